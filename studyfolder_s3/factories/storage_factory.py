"""
Factory for creating study folder databases.
"""

from studyfolder_s3.storage.cloud_storage import StorageConfig
from studyfolder_s3.storage.s3_storage import S3BucketDB
from studyfolder_s3.utils.env_config import AppSettings


def create_bucket_db(settings: AppSettings, **kwargs) -> S3BucketDB | None:
    """Create a bucket database based on configuration."""
    config_dict = settings.get_storage_config()

    # Check if all required fields are present and not empty/whitespace
    access_key = config_dict["access_key_id"]
    secret_key = config_dict["secret_access_key"]
    bucket_name = config_dict["bucket_name"]

    if access_key and access_key.strip() and secret_key and secret_key.strip() and bucket_name and bucket_name.strip():
        config = StorageConfig(**config_dict)
        return S3BucketDB(config, **kwargs)
    return None
