"""
Example application demonstrating study folder storage usage.

This example shows how to:
1. Build a bucket database from environment settings or a credentials file
2. Discover study folders and search their files
3. Download and decode a folder's config.json
4. Upload a new folder's config.json through the default upload policy

Usage:
    python examples/study_folder_example.py [path/to/s3.json [new-folder-name]]
"""

import asyncio
import sys
from pathlib import Path

import structlog

from studyfolder_s3.exceptions import PolicyViolationError, StorageError
from studyfolder_s3.factories.storage_factory import create_bucket_db
from studyfolder_s3.storage.s3_storage import S3BucketDB
from studyfolder_s3.utils.env_config import get_settings
from studyfolder_s3.utils.logging_config import configure_logging_from_settings

logger = structlog.get_logger(__name__)


def open_database(credentials_file: str | None) -> S3BucketDB | None:
    """Open the database from a credentials file, or from STORAGE_* settings."""
    if credentials_file:
        return S3BucketDB.from_credentials_file(Path(credentials_file))
    return create_bucket_db(get_settings())


async def show_folders(db: S3BucketDB) -> None:
    """List every study folder with its files."""
    folders = await db.list_study_folders()
    logger.info("Found study folders", count=len(folders), bucket=db.bucket)

    for folder in folders:
        files = await folder.search()
        dated = folder.dated.isoformat() if folder.dated else "unknown date"
        print(f"{folder.name}  (config {folder.size} bytes, {dated})")
        for entry in files:
            print(f"    {entry.name:40s} {entry.size:>12d}")

    if folders:
        config = await folders[0].download("config.json")
        print(f"\nconfig.json of {folders[0].name}: {sorted(config)}")


async def create_folder(db: S3BucketDB, name: str) -> None:
    """Write the marker of a new folder."""
    folder = db.new_folder(name)
    try:
        await folder.upload("config.json", contents={"name": name})
    except PolicyViolationError as e:
        logger.warning("Upload refused", folder=name, reason=e.message)
        return
    logger.info("Created study folder", folder=name)


async def main(credentials_file: str | None = None, new_folder: str | None = None) -> None:
    """Main application entry point."""
    configure_logging_from_settings()

    db = open_database(credentials_file)
    if db is None:
        logger.error("Storage is not configured; set STORAGE_* variables or pass a credentials file")
        return

    async with db:
        try:
            if new_folder:
                await create_folder(db, new_folder)
            await show_folders(db)
        except StorageError as e:
            logger.error("Storage request failed", kind=e.kind.value, error_code=e.error_code, error=e.message)
            raise


if __name__ == "__main__":
    asyncio.run(main(*sys.argv[1:3]))
