"""
Presigned request issuing for S3-compatible storage.

Every storage operation goes over the wire through a short-lived presigned
URL. Signing is a local SigV4 computation done by botocore; no request is
sent and the credentials are not checked until the URL is used.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import boto3
import structlog
from botocore.config import Config

from ..exceptions import InvalidArgumentError
from .cloud_storage import BucketRef, StorageConfig


logger = structlog.get_logger(__name__)


class StorageOperation(str, Enum):
    """Storage operations that can be presigned."""

    LIST = "list"
    GET = "get"
    PUT = "put"

    @property
    def client_method(self) -> str:
        return _CLIENT_METHODS[self]

    @property
    def http_method(self) -> str:
        return _HTTP_METHODS[self]


_CLIENT_METHODS = {
    StorageOperation.LIST: "list_objects",
    StorageOperation.GET: "get_object",
    StorageOperation.PUT: "put_object",
}

_HTTP_METHODS = {
    StorageOperation.LIST: "GET",
    StorageOperation.GET: "GET",
    StorageOperation.PUT: "PUT",
}


@dataclass(frozen=True)
class OperationDescriptor:
    """Identifies one operation against a bucket, and the object or prefix it targets."""

    operation: StorageOperation
    bucket: str
    key: str | None = None
    prefix: str | None = None
    content_type: str | None = None

    @classmethod
    def list_objects(cls, bucket: str, prefix: str | None = None) -> "OperationDescriptor":
        return cls(StorageOperation.LIST, bucket, prefix=prefix or None)

    @classmethod
    def get_object(cls, bucket: str, key: str) -> "OperationDescriptor":
        return cls(StorageOperation.GET, bucket, key=key)

    @classmethod
    def put_object(cls, bucket: str, key: str, content_type: str | None = None) -> "OperationDescriptor":
        return cls(StorageOperation.PUT, bucket, key=key, content_type=content_type)

    @property
    def http_method(self) -> str:
        return self.operation.http_method

    def to_params(self) -> dict[str, Any]:
        """Build the botocore parameters for this operation."""
        params: dict[str, Any] = {"Bucket": self.bucket}

        if self.operation is StorageOperation.LIST:
            if self.prefix:
                params["Prefix"] = self.prefix
            return params

        if not self.key:
            raise InvalidArgumentError(
                f"{self.operation.value} operation requires an object key",
                error_code="KEY_REQUIRED",
            )
        params["Key"] = self.key
        if self.operation is StorageOperation.PUT and self.content_type:
            params["ContentType"] = self.content_type
        return params


def create_signing_client(config: StorageConfig):
    """Create a botocore S3 client used only for presigning."""
    session = boto3.session.Session()
    boto_config = Config(
        signature_version="s3v4",
        s3={"addressing_style": "path" if config.force_path_style else "auto"},
    )

    client_kwargs: dict[str, Any] = {
        "region_name": config.effective_signing_region,
        "aws_access_key_id": config.access_key_id,
        "aws_secret_access_key": config.secret_access_key,
        "config": boto_config,
    }
    if config.endpoint:
        client_kwargs["endpoint_url"] = config.endpoint

    return session.client("s3", **client_kwargs)


class RequestSigner:
    """Issues presigned URLs valid for a fixed, short window."""

    def __init__(self, bucket_ref: BucketRef, s3_client=None):
        self.bucket_ref = bucket_ref
        self.expires_in = bucket_ref.config.url_expiry_seconds
        self._s3_client = s3_client or create_signing_client(bucket_ref.config)

    def sign(self, descriptor: OperationDescriptor) -> str:
        """Return a presigned URL authorizing exactly this operation."""
        url = self._s3_client.generate_presigned_url(
            ClientMethod=descriptor.operation.client_method,
            Params=descriptor.to_params(),
            ExpiresIn=self.expires_in,
            HttpMethod=descriptor.http_method,
        )
        logger.debug(
            "Signed storage request",
            operation=descriptor.operation.value,
            bucket=descriptor.bucket,
            key=descriptor.key,
            prefix=descriptor.prefix,
            expires_in=self.expires_in,
        )
        return url
