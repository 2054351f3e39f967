"""
Pydantic data models for study folders.

This module defines the domain records handed to callers: the study folder
itself, the files found inside it, and the upload request examined by the
pre-upload policy.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


FOLDER_MARKER = "config.json"


class StudyFolder(BaseModel):
    """A named study folder, optionally annotated with its marker's size and date."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    size: Optional[int] = None
    dated: Optional[datetime] = None

    @property
    def exists_in_storage(self) -> bool:
        """True when the folder was discovered from a marker object."""
        return self.dated is not None or self.size is not None


class FileEntry(BaseModel):
    """A file found by searching a study folder."""

    model_config = ConfigDict(frozen=True)

    name: str
    size: int


class UploadRequest(BaseModel):
    """A materialized upload, as seen by the pre-upload policy."""

    model_config = ConfigDict(frozen=True)

    name: str
    data: bytes
    contents: Any = None
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)
