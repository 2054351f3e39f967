import json
from collections.abc import Generator
from typing import Any

import pytest
import respx

from fake_s3 import (
    DATA_DIR,
    EMPTY_FOLDER,
    REFERENCE_FOLDER,
    REFERENCE_ZIP,
    REFERENCE_ZIP_SIZE,
    TEST_BUCKET,
    TEST_ENDPOINT,
    TEST_HOST,
    FakeS3,
)
from studyfolder_s3.storage.cloud_storage import StorageConfig
from studyfolder_s3.storage.s3_storage import S3BucketDB


@pytest.fixture
def reference_config() -> dict[str, Any]:
    return json.loads((DATA_DIR / REFERENCE_FOLDER / "config.json").read_text(encoding="utf-8"))


@pytest.fixture
def storage_config() -> StorageConfig:
    return StorageConfig(
        bucket=TEST_BUCKET,
        endpoint=TEST_ENDPOINT,
        region="us-east-1",
        access_key_id="AKIAEXAMPLEKEY",
        secret_access_key="example-secret-key",
        force_path_style=True,
    )


@pytest.fixture
def fake_s3() -> Generator[FakeS3]:
    s3 = FakeS3(bucket=TEST_BUCKET)
    s3.put_object(f"{REFERENCE_FOLDER}/config.json", (DATA_DIR / REFERENCE_FOLDER / "config.json").read_bytes())
    s3.put_object(f"{REFERENCE_FOLDER}/{REFERENCE_ZIP}", b"PK\x05\x06" + b"\x00" * 18, size=REFERENCE_ZIP_SIZE)
    s3.put_object(f"{EMPTY_FOLDER}/config.json", json.dumps({"name": EMPTY_FOLDER}).encode("utf-8"))
    s3.put_object("README.md", b"# Study folders\n")

    with respx.mock(assert_all_called=False) as router:
        router.route(host=TEST_HOST).mock(side_effect=s3.handle)
        yield s3


@pytest.fixture
def bucket_db(storage_config: StorageConfig, fake_s3: FakeS3) -> S3BucketDB:
    return S3BucketDB(storage_config)
