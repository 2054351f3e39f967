"""
Pre-upload policy checks.

A policy runs after the payload is materialized and before any network I/O.
Whatever it raises propagates to the caller unchanged.
"""

import json
from typing import Protocol

import structlog

from ..exceptions import PolicyViolationError
from ..models.folder_model import FOLDER_MARKER, StudyFolder, UploadRequest


logger = structlog.get_logger(__name__)


class UploadPolicy(Protocol):
    """Hook deciding whether an upload may proceed."""

    async def check(self, folder: StudyFolder, request: UploadRequest) -> None:
        ...


class AllowAllPolicy:
    """Policy that accepts every upload."""

    async def check(self, folder: StudyFolder, request: UploadRequest) -> None:
        return None


class DefaultUploadPolicy:
    """
    Guards the folder marker.

    ``config.json`` must hold a JSON object. When the folder already exists in
    storage, its marker may only be replaced by a config naming the same
    folder.
    """

    def __init__(self, marker: str = FOLDER_MARKER):
        self.marker = marker

    async def check(self, folder: StudyFolder, request: UploadRequest) -> None:
        if request.name != self.marker:
            return

        config = request.contents
        if config is None:
            try:
                config = json.loads(request.data)
            except (UnicodeDecodeError, json.JSONDecodeError):
                self._reject(folder, f"{self.marker} is not valid JSON")

        if not isinstance(config, dict):
            self._reject(folder, f"{self.marker} must contain a JSON object")

        if folder.exists_in_storage and config.get("name") != folder.name:
            self._reject(
                folder,
                f"{self.marker} name {config.get('name')!r} does not match existing folder {folder.name!r}",
            )

    def _reject(self, folder: StudyFolder, reason: str) -> None:
        logger.info("Upload rejected by policy", folder=folder.name, reason=reason)
        raise PolicyViolationError(
            f"Policy Violation: {reason}",
            error_code="POLICY_VIOLATION",
            details={"folder": folder.name},
        )
