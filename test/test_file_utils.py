import io
from pathlib import Path

import pytest

from studyfolder_s3.exceptions import InvalidArgumentError, UnsafeObjectError, UnsupportedOperationError
from studyfolder_s3.storage.file_utils import DecodeStrategy, FileUtils, get_content_type, get_decode_strategy


@pytest.fixture
def utils() -> FileUtils:
    return FileUtils()


@pytest.mark.parametrize(
    ("name", "strategy"),
    [
        ("config.json", DecodeStrategy.JSON),
        ("README.md", DecodeStrategy.TEXT),
        ("notes.TXT", DecodeStrategy.TEXT),
        ("20201004T001600.zip", DecodeStrategy.BINARY),
    ],
)
def test_decode_strategy_by_extension(name: str, strategy: DecodeStrategy) -> None:
    assert get_decode_strategy(name) is strategy


@pytest.mark.parametrize("name", ["bull.crap", "data.csv", "no-extension"])
def test_unknown_extension_is_unsupported(name: str) -> None:
    with pytest.raises(UnsupportedOperationError, match=f"download unimplemented for {name}"):
        get_decode_strategy(name)


def test_content_types() -> None:
    assert get_content_type("config.json") == "application/json"
    assert get_content_type("results.zip") == "application/zip"
    assert get_content_type("blob.unknownext") == "application/octet-stream"
    assert get_content_type("config.json", "text/plain") == "text/plain"


def test_decode_json_is_safety_checked(utils: FileUtils) -> None:
    assert utils.decode(DecodeStrategy.JSON, b'{"a": [1, 2]}') == {"a": [1, 2]}
    assert utils.decode(DecodeStrategy.JSON, b"3") == 3

    with pytest.raises(UnsafeObjectError):
        utils.decode(DecodeStrategy.JSON, b'{"__class__": {}}')


def test_decode_text_and_binary(utils: FileUtils) -> None:
    assert utils.decode(DecodeStrategy.TEXT, "héllo".encode("utf-8")) == "héllo"
    assert utils.decode(DecodeStrategy.BINARY, b"\x00\xff") == b"\x00\xff"


def test_encode_contents(utils: FileUtils) -> None:
    assert utils.encode_contents({"name": "test123"}) == b'{"name": "test123"}'

    with pytest.raises(InvalidArgumentError, match="not JSON serializable"):
        utils.encode_contents({"when": object()})


@pytest.mark.asyncio
async def test_materialize_bytes_like_and_text(utils: FileUtils) -> None:
    assert await utils.materialize(b"abc") == b"abc"
    assert await utils.materialize(bytearray(b"abc")) == b"abc"
    assert await utils.materialize(memoryview(b"abc")) == b"abc"
    assert await utils.materialize("ü") == "ü".encode("utf-8")


@pytest.mark.asyncio
async def test_materialize_path(utils: FileUtils, tmp_path: Path) -> None:
    source = tmp_path / "payload.bin"
    source.write_bytes(b"\x01\x02\x03")

    assert await utils.materialize(source) == b"\x01\x02\x03"


@pytest.mark.asyncio
async def test_materialize_missing_path(utils: FileUtils, tmp_path: Path) -> None:
    with pytest.raises(InvalidArgumentError, match="Cannot read upload source"):
        await utils.materialize(tmp_path / "missing.bin")


@pytest.mark.asyncio
async def test_materialize_file_like_and_iterables(utils: FileUtils) -> None:
    assert await utils.materialize(io.BytesIO(b"stream")) == b"stream"
    assert await utils.materialize([b"a", "b", bytearray(b"c")]) == b"abc"


@pytest.mark.asyncio
async def test_materialize_async_reader(utils: FileUtils) -> None:
    class AsyncReader:
        async def read(self) -> bytes:
            return b"async data"

    assert await utils.materialize(AsyncReader()) == b"async data"


@pytest.mark.asyncio
async def test_materialize_rejects_unknown_payload(utils: FileUtils) -> None:
    with pytest.raises(InvalidArgumentError, match="Unsupported upload payload type: int"):
        await utils.materialize(42)

    with pytest.raises(InvalidArgumentError, match="Unsupported payload chunk type"):
        await utils.materialize([1, 2])
