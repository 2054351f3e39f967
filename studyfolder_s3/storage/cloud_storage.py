"""
Abstract study folder storage interface.

This module defines the bucket configuration model and the capability
interface shared by storage-backed study folders, independent of how the
objects are actually transported. The error taxonomy is re-exported from
:mod:`studyfolder_s3.exceptions`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..exceptions import (
    InvalidArgumentError,
    NotFoundError,
    PolicyViolationError,
    StorageError,
    StorageErrorKind,
    StorageListError,
    StorageTransportError,
    UnsafeObjectError,
    UnsupportedOperationError,
)
from ..models.folder_model import FileEntry, StudyFolder


DEFAULT_REGION = "us-east-1"
DEFAULT_URL_EXPIRY_SECONDS = 60


class StorageConfig(BaseModel):
    """Configuration for an S3-compatible bucket."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    bucket: str = Field(validation_alias=AliasChoices("bucket", "bucket_name"), min_length=1)
    endpoint: str | None = Field(default=None, validation_alias=AliasChoices("endpoint", "endpoint_url"))
    region: str = DEFAULT_REGION
    signing_region: str | None = Field(
        default=None, validation_alias=AliasChoices("signing_region", "signingRegion")
    )
    access_key_id: str | None = Field(
        default=None, validation_alias=AliasChoices("access_key_id", "accessKeyId", "a")
    )
    secret_access_key: str | None = Field(
        default=None, validation_alias=AliasChoices("secret_access_key", "secretKey", "s"), repr=False
    )
    force_path_style: bool = Field(
        default=False, validation_alias=AliasChoices("force_path_style", "forcePathStyle")
    )

    # Request settings
    url_expiry_seconds: int = Field(default=DEFAULT_URL_EXPIRY_SECONDS, ge=1, le=7 * 24 * 3600)
    request_timeout: float = Field(default=60.0, gt=0)

    @field_validator("endpoint", "signing_region", mode="before")
    @classmethod
    def _blank_as_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("region", mode="before")
    @classmethod
    def _blank_region_as_default(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_REGION
        return value

    @property
    def effective_signing_region(self) -> str:
        """Region used for request signatures."""
        return self.signing_region or self.region


@dataclass(frozen=True)
class BucketRef:
    """Immutable pairing of a bucket name with its client configuration."""

    bucket: str
    config: StorageConfig

    @classmethod
    def from_config(cls, config: StorageConfig) -> "BucketRef":
        return cls(bucket=config.bucket, config=config)


class FolderStorage(ABC):
    """
    Capability interface of a storage-backed study folder.

    Implementations are constructed with their storage dependencies injected
    and expose the folder's domain record through :attr:`folder`.
    """

    def __init__(self, folder: StudyFolder):
        self.folder = folder

    @property
    def name(self) -> str:
        return self.folder.name

    @property
    def size(self) -> int | None:
        return self.folder.size

    @property
    def dated(self) -> datetime | None:
        return self.folder.dated

    @abstractmethod
    async def search(self, prefix: str | None = None) -> list[FileEntry]:
        """
        List the files stored in this folder.

        Args:
            prefix: Optional file name prefix narrowing the listing

        Returns:
            FileEntry objects in storage key order
        """
        pass

    @abstractmethod
    async def download(self, name: str | None = None) -> Any:
        """
        Download and decode one file of this folder.

        Args:
            name: File name within the folder

        Returns:
            Decoded content (object, text or bytes depending on extension)
        """
        pass

    @abstractmethod
    async def upload(
        self,
        name: str | None = None,
        contents: Any = None,
        blob: Any = None,
        content_type: str | None = None,
    ) -> bool:
        """
        Upload one file into this folder.

        Args:
            name: File name within the folder
            contents: JSON-serializable contents
            blob: Raw payload (bytes, text, path, file-like or chunk iterable)
            content_type: MIME type override

        Returns:
            True on success
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, size={self.size!r}, dated={self.dated!r})"


__all__ = [
    "BucketRef",
    "FolderStorage",
    "StorageConfig",
    "StorageErrorKind",
    "StorageError",
    "InvalidArgumentError",
    "UnsafeObjectError",
    "StorageTransportError",
    "NotFoundError",
    "StorageListError",
    "UnsupportedOperationError",
    "PolicyViolationError",
    "DEFAULT_REGION",
    "DEFAULT_URL_EXPIRY_SECONDS",
]
