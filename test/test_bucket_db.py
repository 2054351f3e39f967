import json
from pathlib import Path

import httpx
import pytest
from pydantic import ValidationError

from studyfolder_s3.exceptions import InvalidArgumentError, StorageListError
from studyfolder_s3.storage.cloud_storage import StorageConfig
from studyfolder_s3.storage.policy import AllowAllPolicy
from studyfolder_s3.storage.s3_storage import S3BucketDB, S3StudyFolder

from fake_s3 import DEFAULT_MODIFIED, EMPTY_FOLDER, REFERENCE_FOLDER, TEST_BUCKET, TEST_ENDPOINT, FakeS3


class TestListStudyFolders:
    """Test suite for study folder discovery."""

    @pytest.mark.asyncio
    async def test_finds_all_marked_folders(self, bucket_db: S3BucketDB) -> None:
        folders = await bucket_db.list_study_folders()

        assert [folder.name for folder in folders] == [REFERENCE_FOLDER, EMPTY_FOLDER]
        assert all(isinstance(folder, S3StudyFolder) for folder in folders)

    @pytest.mark.asyncio
    async def test_folders_carry_marker_size_and_date(self, bucket_db: S3BucketDB) -> None:
        folders = await bucket_db.list_study_folders()

        assert folders[0].size == 1529
        assert folders[0].dated == DEFAULT_MODIFIED
        assert folders[0].folder.exists_in_storage is True

    @pytest.mark.asyncio
    async def test_unknown_name_yields_empty_list(self, bucket_db: S3BucketDB) -> None:
        assert await bucket_db.list_study_folders("no-such-folder") == []

    @pytest.mark.asyncio
    async def test_name_narrows_to_one_folder(self, bucket_db: S3BucketDB, fake_s3: FakeS3) -> None:
        folders = await bucket_db.list_study_folders(REFERENCE_FOLDER)

        assert len(folders) == 1
        assert folders[0].name == REFERENCE_FOLDER
        assert fake_s3.list_requests[-1].url.params["prefix"] == f"{REFERENCE_FOLDER}/"

    @pytest.mark.asyncio
    async def test_nested_markers_are_folders(self, bucket_db: S3BucketDB, fake_s3: FakeS3) -> None:
        fake_s3.put_object("group/sub-study/config.json", b'{"name": "group/sub-study"}')

        folders = await bucket_db.list_study_folders()

        assert "group/sub-study" in [folder.name for folder in folders]

    @pytest.mark.asyncio
    async def test_listing_failure_propagates(self, bucket_db: S3BucketDB, fake_s3: FakeS3) -> None:
        fake_s3.fail_with("GET", 403, "InvalidAccessKeyId", "The AWS Access Key Id you provided does not exist.")

        with pytest.raises(StorageListError, match="InvalidAccessKeyId"):
            await bucket_db.list_study_folders()


class TestNewFolder:
    """Test suite for folders that do not exist yet."""

    def test_new_folder_has_no_size_or_date(self, bucket_db: S3BucketDB) -> None:
        folder = bucket_db.new_folder("fresh-study")

        assert folder.name == "fresh-study"
        assert folder.size is None
        assert folder.dated is None
        assert folder.folder.exists_in_storage is False

    @pytest.mark.parametrize("name", ["", "   ", "a/b", None])
    def test_new_folder_rejects_bad_names(self, bucket_db: S3BucketDB, name) -> None:
        with pytest.raises(InvalidArgumentError):
            bucket_db.new_folder(name)

    @pytest.mark.asyncio
    async def test_new_folder_search_is_empty(self, bucket_db: S3BucketDB) -> None:
        assert await bucket_db.new_folder("fresh-study").search() == []

    @pytest.mark.asyncio
    async def test_custom_upload_policy_is_shared(self, storage_config: StorageConfig, fake_s3: FakeS3) -> None:
        db = S3BucketDB(storage_config, upload_policy=AllowAllPolicy())
        folder = (await db.list_study_folders(REFERENCE_FOLDER))[0]

        assert await folder.upload("config.json", contents={"name": "renamed"}) is True


class TestBucketDBConstruction:
    """Test suite for building the database from credentials."""

    def test_from_short_credential_mapping(self) -> None:
        db = S3BucketDB(
            {"endpoint": TEST_ENDPOINT, "region": "", "bucket": TEST_BUCKET, "a": "AKIAEXAMPLEKEY", "s": "secret"}
        )

        assert db.bucket == TEST_BUCKET
        assert db.config.region == "us-east-1"
        assert db.config.access_key_id == "AKIAEXAMPLEKEY"
        assert db.config.secret_access_key == "secret"

    def test_from_camel_case_mapping(self) -> None:
        db = S3BucketDB(
            {
                "endpoint": "",
                "bucket": TEST_BUCKET,
                "accessKeyId": "AKIAEXAMPLEKEY",
                "secretKey": "secret",
                "signingRegion": "auto",
                "forcePathStyle": True,
            }
        )

        assert db.config.endpoint is None
        assert db.config.effective_signing_region == "auto"
        assert db.config.force_path_style is True

    def test_secret_is_not_in_repr(self, storage_config: StorageConfig) -> None:
        assert "example-secret-key" not in repr(storage_config)

    def test_bucket_is_required(self) -> None:
        with pytest.raises(ValidationError):
            S3BucketDB({"endpoint": TEST_ENDPOINT, "a": "key", "s": "secret"})

    def test_from_credentials_file(self, tmp_path: Path) -> None:
        path = tmp_path / "s3.json"
        path.write_text(
            json.dumps({"endpoint": TEST_ENDPOINT, "region": "us-east-1", "bucket": TEST_BUCKET, "a": "k", "s": "s"}),
            encoding="utf-8",
        )

        db = S3BucketDB.from_credentials_file(path)

        assert db.bucket == TEST_BUCKET
        assert db.config.endpoint == TEST_ENDPOINT

    def test_from_missing_credentials_file(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidArgumentError, match="Cannot load storage credentials"):
            S3BucketDB.from_credentials_file(tmp_path / "missing.json")

    @pytest.mark.asyncio
    async def test_async_context_closes_shared_client(self, storage_config: StorageConfig, fake_s3: FakeS3) -> None:
        client = httpx.AsyncClient()

        async with S3BucketDB(storage_config, http_client=client) as db:
            folders = await db.list_study_folders()

        assert len(folders) == 2
        assert client.is_closed
