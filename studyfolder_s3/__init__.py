"""
Study folder client for S3-compatible object storage.

Study folders are key prefixes marked by a ``config.json`` object. Folders are
discovered, searched, downloaded from and uploaded to through short-lived
presigned URLs.
"""

from .exceptions import StorageError, StorageErrorKind
from .models.folder_model import FileEntry, StudyFolder
from .storage import S3BucketDB, S3StudyFolder, StorageConfig

__version__ = "0.1.0"

__all__ = [
    "S3BucketDB",
    "S3StudyFolder",
    "StorageConfig",
    "StudyFolder",
    "FileEntry",
    "StorageError",
    "StorageErrorKind",
]
