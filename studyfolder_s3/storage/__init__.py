"""
S3-compatible study folder storage module.

This module provides presigned access to study folders kept in any
S3-compatible bucket, including AWS S3, MinIO, DigitalOcean Spaces, Wasabi,
Backblaze B2 and others. Folders are discovered from their ``config.json``
markers and files are transferred through short-lived presigned URLs.
"""

from .cloud_storage import (
    BucketRef,
    FolderStorage,
    InvalidArgumentError,
    NotFoundError,
    PolicyViolationError,
    StorageConfig,
    StorageError,
    StorageErrorKind,
    StorageListError,
    StorageTransportError,
    UnsafeObjectError,
    UnsupportedOperationError,
)
from .file_utils import DecodeStrategy, FileUtils, file_utils
from .listing import BucketLister, FolderScope, ScopedLister, StorageEntry
from .policy import AllowAllPolicy, DefaultUploadPolicy, UploadPolicy
from .responses import BodyFormat, NormalizedResponse, ResponseNormalizer
from .s3_storage import S3BucketDB, S3StudyFolder
from .signing import OperationDescriptor, RequestSigner, StorageOperation


def create_bucket_db(config: StorageConfig, **kwargs) -> S3BucketDB:
    """Create a study folder database over an S3-compatible bucket."""
    return S3BucketDB(config, **kwargs)


__all__ = [
    # Abstract interfaces and configuration
    "FolderStorage",
    "StorageConfig",
    "BucketRef",
    # Concrete implementations
    "S3BucketDB",
    "S3StudyFolder",
    # Factory functions
    "create_bucket_db",
    # Request plumbing
    "StorageOperation",
    "OperationDescriptor",
    "RequestSigner",
    "ResponseNormalizer",
    "NormalizedResponse",
    "BodyFormat",
    "BucketLister",
    "FolderScope",
    "ScopedLister",
    "StorageEntry",
    # Upload policies
    "UploadPolicy",
    "DefaultUploadPolicy",
    "AllowAllPolicy",
    # Exceptions
    "StorageErrorKind",
    "StorageError",
    "InvalidArgumentError",
    "UnsafeObjectError",
    "StorageTransportError",
    "NotFoundError",
    "StorageListError",
    "UnsupportedOperationError",
    "PolicyViolationError",
    # Utilities
    "DecodeStrategy",
    "FileUtils",
    "file_utils",
]
