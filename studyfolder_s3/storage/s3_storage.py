"""
S3-compatible study folder storage.

This module provides the bucket handle that discovers study folders from
their ``config.json`` markers, and the storage-backed folder that searches,
downloads and uploads the files inside one of them. Every request goes out
through its own short-lived presigned URL.
"""

import json
from pathlib import Path
from typing import Any, Mapping

import httpx
import structlog

from ..exceptions import (
    InvalidArgumentError,
    NotFoundError,
    StorageError,
    StorageTransportError,
)
from ..models.folder_model import FOLDER_MARKER, FileEntry, StudyFolder, UploadRequest
from ..utils.validators import ArgumentValidator
from .cloud_storage import BucketRef, FolderStorage, StorageConfig
from .file_utils import FileUtils
from .listing import BucketLister, FolderScope, ScopedLister, StorageEntry
from .policy import DefaultUploadPolicy, UploadPolicy
from .responses import ResponseNormalizer, extract_error
from .signing import OperationDescriptor, RequestSigner


logger = structlog.get_logger(__name__)


class S3StudyFolder(FolderStorage):
    """
    A study folder backed by an S3-compatible bucket.

    The folder never sees keys outside ``<name>/``: listings go through a
    :class:`ScopedLister` and object keys are built by its :class:`FolderScope`.
    """

    def __init__(
        self,
        folder: StudyFolder,
        lister: ScopedLister,
        normalizer: ResponseNormalizer,
        policy: UploadPolicy | None = None,
        file_utils: FileUtils | None = None,
    ):
        super().__init__(folder)
        self.lister = lister
        self.normalizer = normalizer
        self.policy = policy or DefaultUploadPolicy()
        self.file_utils = file_utils or FileUtils()

    @property
    def scope(self) -> FolderScope:
        return self.lister.scope

    @property
    def bucket(self) -> str:
        return self.scope.bucket_ref.bucket

    async def search(self, prefix: str | None = None) -> list[FileEntry]:
        """List every file under this folder, optionally narrowed by a name prefix."""

        def to_file_entry(entry: StorageEntry) -> FileEntry:
            return FileEntry(name=entry.key.split("/")[-1], size=entry.size)

        return await self.lister.list(map=to_file_entry, prefix=prefix or None)

    async def download(self, name: str | None = None) -> Any:
        """
        Download ``<folder>/<name>`` and decode it by extension.

        Raises:
            InvalidArgumentError: If name is not a string
            UnsupportedOperationError: If the extension has no decode strategy
            NotFoundError: If the object does not exist
            StorageTransportError: If the request fails
            UnsafeObjectError: If decoded JSON carries a disallowed key
        """
        name = ArgumentValidator.require_file_name(name)
        strategy = self.file_utils.get_decode_strategy(name)

        key = self.scope.key(name)
        response = await self.normalizer.fetch(OperationDescriptor.get_object(self.bucket, key), raw=True)

        if not response.is_success:
            self._raise_download_failure(name, key, response)

        try:
            result = self.file_utils.decode(strategy, response.content)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageError(
                f"download failed for {name}: cannot decode {strategy.value} content",
                error_code="DECODE_FAILED",
                status_code=response.status_code,
                details={"key": key},
            ) from e

        logger.debug("Downloaded file", folder=self.name, file=name, bytes=len(response.content))
        return result

    async def upload(
        self,
        name: str | None = None,
        contents: Any = None,
        blob: Any = None,
        content_type: str | None = None,
    ) -> bool:
        """
        Upload one file into this folder with a single presigned PUT.

        Raises:
            InvalidArgumentError: If name or payload is missing or malformed
            PolicyViolationError: If the upload policy rejects the file
            StorageTransportError: If the service rejects the upload
        """
        name = ArgumentValidator.require_file_name(name)
        if (contents is None) == (blob is None):
            raise InvalidArgumentError(
                "exactly one of contents or blob is required",
                error_code="PAYLOAD_REQUIRED",
            )

        if contents is not None:
            data = self.file_utils.encode_contents(contents)
        else:
            data = await self.file_utils.materialize(blob)

        request = UploadRequest(
            name=name,
            data=data,
            contents=contents,
            content_type=content_type or self.file_utils.get_content_type(name),
        )
        await self.policy.check(self.folder, request)

        key = self.scope.key(name)
        descriptor = OperationDescriptor.put_object(self.bucket, key, content_type=request.content_type)
        headers = {
            "Content-Length": str(request.size),
            "Content-Type": request.content_type,
        }
        response = await self.normalizer.fetch(descriptor, content=request.data, headers=headers)

        if not response.ok:
            error = response.error_pair()
            code, message = error if error else (None, f"HTTP {response.status_code}")
            logger.error(
                "Upload failed",
                folder=self.name,
                file=name,
                status_code=response.status_code,
                error_code=code,
            )
            raise StorageTransportError(
                f"upload failed for {name}: {message}",
                error_code=code,
                status_code=response.status_code,
                details={"key": key, "body": response.body},
            )

        logger.info("Uploaded file", folder=self.name, file=name, bytes=request.size)
        return True

    def _raise_download_failure(self, name: str, key: str, response: httpx.Response) -> None:
        error = extract_error(self.normalizer.normalize(response).body)
        code = error[0] if error else None

        logger.warning(
            "Download failed",
            folder=self.name,
            file=name,
            status_code=response.status_code,
            error_code=code,
        )

        error_class = NotFoundError if response.status_code == 404 or code == "NoSuchKey" else StorageTransportError
        raise error_class(
            f"download failed for {name}",
            error_code=code,
            status_code=response.status_code,
            details={"key": key},
        )


class S3BucketDB:
    """
    Study folder database stored in one S3-compatible bucket.

    Each folder is a key prefix holding exactly one ``config.json`` marker.
    """

    def __init__(
        self,
        config: StorageConfig | Mapping[str, Any],
        http_client: httpx.AsyncClient | None = None,
        s3_client=None,
        upload_policy: UploadPolicy | None = None,
    ):
        if not isinstance(config, StorageConfig):
            config = StorageConfig.model_validate(dict(config))

        self.config = config
        self.bucket_ref = BucketRef.from_config(config)
        self.upload_policy = upload_policy or DefaultUploadPolicy()
        self._http_client = http_client

        self._signer = RequestSigner(self.bucket_ref, s3_client=s3_client)
        self._normalizer = ResponseNormalizer(self._signer, http_client=http_client, timeout=config.request_timeout)
        self._lister = BucketLister(self.bucket_ref, self._normalizer)
        self._file_utils = FileUtils()

        logger.info(
            "Study folder database initialized",
            bucket=config.bucket,
            endpoint=config.endpoint,
            region=config.region,
        )

    @classmethod
    def from_credentials_file(cls, path: str | Path, **kwargs: Any) -> "S3BucketDB":
        """
        Create a database from a JSON credentials file.

        The file holds ``{"endpoint", "region", "bucket", "a", "s"}`` or the
        long-form key names accepted by :class:`StorageConfig`.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise InvalidArgumentError(
                f"Cannot load storage credentials from {path}: {e}",
                error_code="CREDENTIALS_UNREADABLE",
            ) from e
        return cls(data, **kwargs)

    @property
    def bucket(self) -> str:
        return self.bucket_ref.bucket

    @property
    def lister(self) -> BucketLister:
        return self._lister

    async def list_study_folders(self, name: str | None = None) -> list[S3StudyFolder]:
        """
        Find study folders by their ``config.json`` markers.

        Args:
            name: Optional folder name; narrows the listing to ``<name>/``

        Returns:
            One folder per marker, annotated with the marker's size and date
        """
        suffix = f"/{FOLDER_MARKER}"

        def is_marker(entry: StorageEntry) -> bool:
            return entry.key.endswith(suffix)

        def to_folder(entry: StorageEntry) -> S3StudyFolder:
            folder = StudyFolder(
                name=entry.key[: -len(suffix)],
                size=entry.size,
                dated=entry.last_modified,
            )
            return self._make_folder(folder)

        prefix = f"{name}/" if name else None
        return await self._lister.list(map=to_folder, filter=is_marker, prefix=prefix)

    def new_folder(self, name: str) -> S3StudyFolder:
        """Create a handle for a folder that does not exist in storage yet."""
        if not isinstance(name, str) or not name.strip() or "/" in name:
            raise InvalidArgumentError("folder name[string] without '/' required", error_code="NAME_INVALID")
        return self._make_folder(StudyFolder(name=name))

    def _make_folder(self, folder: StudyFolder) -> S3StudyFolder:
        scope = FolderScope(self.bucket_ref, folder.name)
        return S3StudyFolder(
            folder,
            lister=scope.bind(self._lister),
            normalizer=self._normalizer,
            policy=self.upload_policy,
            file_utils=self._file_utils,
        )

    async def aclose(self) -> None:
        """Close an injected shared HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()

    async def __aenter__(self) -> "S3BucketDB":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
