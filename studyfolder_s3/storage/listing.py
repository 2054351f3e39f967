"""
Object listing with prefix, filter and map semantics.

A listing issues exactly one list-objects request and returns the first page
of results only. When the service reports more pages, a warning is logged and
the remaining pages are not fetched.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, TypeVar
from urllib.parse import unquote_plus

import structlog

from ..exceptions import StorageListError
from ..utils.validators import ArgumentValidator
from .cloud_storage import BucketRef
from .responses import ResponseNormalizer
from .signing import OperationDescriptor


logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StorageEntry:
    """One object record from a listing response."""

    key: str
    size: int
    last_modified: datetime | None = None
    etag: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any], url_encoded: bool = False) -> "StorageEntry":
        key = str(record.get("Key", ""))
        if url_encoded:
            key = unquote_plus(key)

        etag = record.get("ETag")
        return cls(
            key=key,
            size=_parse_size(record.get("Size")),
            last_modified=parse_timestamp(record.get("LastModified")),
            etag=etag.strip('"') if isinstance(etag, str) else None,
        )


@dataclass(frozen=True)
class ListingRequest(Generic[T]):
    """A single listing call: transform, optional filter and optional prefix."""

    map: Callable[[StorageEntry], T]
    filter: Callable[[StorageEntry], bool] | None = None
    prefix: str | None = None

    def validate(self) -> None:
        ArgumentValidator.require_callable(self.map, "map")
        ArgumentValidator.require_callable(self.filter, "filter", optional=True)


def _parse_size(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by S3 (``2020-10-04T00:16:00.000Z``)."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable LastModified in listing", value=value)
        return None


def _is_true(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def extract_listing(body: Any) -> dict[str, Any]:
    """Unwrap the ``ListBucketResult`` element when present."""
    if isinstance(body, dict):
        result = body.get("ListBucketResult", body)
        if isinstance(result, dict):
            return result
    return {}


def extract_records(listing: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Return the ``Contents`` records as a list.

    A single record may arrive as a bare mapping rather than a one-element
    list, and an empty listing may omit ``Contents`` entirely.
    """
    contents = listing.get("Contents")
    if contents is None or contents == "":
        return []
    if isinstance(contents, dict):
        return [contents]
    if isinstance(contents, list):
        return [record for record in contents if isinstance(record, dict)]
    return []


class BucketLister:
    """Lists the objects of one bucket through presigned requests."""

    def __init__(self, bucket_ref: BucketRef, normalizer: ResponseNormalizer):
        self.bucket_ref = bucket_ref
        self.normalizer = normalizer

    async def list_request(self, request: ListingRequest[T]) -> list[T]:
        request.validate()

        descriptor = OperationDescriptor.list_objects(self.bucket_ref.bucket, request.prefix)
        response = await self.normalizer.fetch(descriptor)

        if not response.ok:
            error = response.error_pair()
            if error:
                code, message = error
                raise StorageListError(
                    f"Listing failed: {code}: {message}",
                    error_code=code,
                    status_code=response.status_code,
                    details={"prefix": request.prefix, "message": message},
                )
            raise StorageListError(
                f"Listing failed for bucket {self.bucket_ref.bucket}",
                status_code=response.status_code,
                details={"prefix": request.prefix},
            )

        listing = extract_listing(response.body)
        records = extract_records(listing)
        if not records:
            logger.debug("Empty listing", bucket=self.bucket_ref.bucket, prefix=request.prefix)
            return []

        url_encoded = str(listing.get("EncodingType", "")).lower() == "url"
        entries = [StorageEntry.from_record(record, url_encoded=url_encoded) for record in records]

        if request.filter is not None:
            entries = [entry for entry in entries if request.filter(entry)]
        results = [request.map(entry) for entry in entries]

        if _is_true(listing.get("IsTruncated")):
            marker = listing.get("NextMarker") or (entries[-1].key if entries else None)
            logger.warning(
                "Listing truncated; only the first page is returned",
                bucket=self.bucket_ref.bucket,
                prefix=request.prefix,
                next_marker=marker,
            )

        logger.debug(
            "Listed objects",
            bucket=self.bucket_ref.bucket,
            prefix=request.prefix,
            records=len(records),
            results=len(results),
        )
        return results

    async def list(
        self,
        map: Callable[[StorageEntry], T],
        filter: Callable[[StorageEntry], bool] | None = None,
        prefix: str | None = None,
    ) -> list[T]:
        """
        List objects under ``prefix``, keep those accepted by ``filter`` and transform them with ``map``.

        Raises:
            InvalidArgumentError: If ``map`` (or a given ``filter``) is not callable
            StorageListError: If the service reports a failure
        """
        return await self.list_request(ListingRequest(map=map, filter=filter, prefix=prefix))


@dataclass(frozen=True)
class FolderScope:
    """A bucket reference pre-bound to one folder's key prefix."""

    bucket_ref: BucketRef
    folder_name: str

    @property
    def prefix(self) -> str:
        return f"{self.folder_name}/"

    def key(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def scoped(self, sub_prefix: str | None = None) -> str:
        return self.prefix + (sub_prefix or "")

    def bind(self, lister: BucketLister) -> "ScopedLister":
        return ScopedLister(scope=self, lister=lister)


@dataclass(frozen=True)
class ScopedLister:
    """Listing restricted to a folder's namespace."""

    scope: FolderScope
    lister: BucketLister

    async def list(
        self,
        map: Callable[[StorageEntry], T],
        filter: Callable[[StorageEntry], bool] | None = None,
        prefix: str | None = None,
    ) -> list[T]:
        return await self.lister.list(map=map, filter=filter, prefix=self.scope.scoped(prefix))
