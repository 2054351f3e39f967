"""
File utility functions for study folder transfers.

This module maps file names to decode strategies and content types, decodes
downloaded bodies, and materializes upload payloads into bytes.
"""

import json
import mimetypes
from collections.abc import AsyncIterable, Iterable
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles

from ..exceptions import InvalidArgumentError, UnsupportedOperationError
from ..utils.validators import expect_safe_object


class DecodeStrategy(str, Enum):
    """How a downloaded body is turned into a Python value."""

    JSON = "json"
    TEXT = "text"
    BINARY = "binary"


class FileUtils:
    """Utility class for extension-driven decoding and payload handling."""

    # Closed allow-list of downloadable extensions
    DECODE_STRATEGIES: Dict[str, DecodeStrategy] = {
        '.json': DecodeStrategy.JSON,
        '.txt': DecodeStrategy.TEXT,
        '.md': DecodeStrategy.TEXT,
        '.zip': DecodeStrategy.BINARY,
    }

    CONTENT_TYPES: Dict[str, str] = {
        '.json': 'application/json',
        '.txt': 'text/plain; charset=utf-8',
        '.md': 'text/markdown; charset=utf-8',
        '.zip': 'application/zip',
    }

    DEFAULT_CONTENT_TYPE = 'application/octet-stream'

    @staticmethod
    def get_extension(name: str) -> str:
        return Path(name).suffix.lower()

    def get_decode_strategy(self, name: str) -> DecodeStrategy:
        """
        Determine how to decode a file from its extension.

        Raises:
            UnsupportedOperationError: If the extension is not in the allow-list
        """
        strategy = self.DECODE_STRATEGIES.get(self.get_extension(name))
        if strategy is None:
            raise UnsupportedOperationError(
                f"download unimplemented for {name}",
                error_code="UNSUPPORTED_EXTENSION",
                details={"name": name},
            )
        return strategy

    def get_content_type(self, name: str) -> str:
        """Content type to declare when uploading ``name``."""
        extension = self.get_extension(name)
        if extension in self.CONTENT_TYPES:
            return self.CONTENT_TYPES[extension]
        guessed, _ = mimetypes.guess_type(name)
        return guessed or self.DEFAULT_CONTENT_TYPE

    def decode(self, strategy: DecodeStrategy, content: bytes) -> Any:
        """
        Decode a downloaded body.

        Structured (JSON) results are checked with the safe-object validator
        before being returned.
        """
        if strategy is DecodeStrategy.BINARY:
            return content
        if strategy is DecodeStrategy.TEXT:
            return content.decode('utf-8')

        result = json.loads(content)
        if isinstance(result, (dict, list)):
            expect_safe_object(result)
        return result

    def encode_contents(self, contents: Any) -> bytes:
        """Serialize structured contents as UTF-8 JSON."""
        try:
            return json.dumps(contents, ensure_ascii=False).encode('utf-8')
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(
                f"contents are not JSON serializable: {e}",
                error_code="CONTENTS_NOT_SERIALIZABLE",
            ) from e

    async def materialize(self, blob: Any) -> bytes:
        """
        Resolve an upload payload into a concrete byte buffer.

        Accepts bytes-like objects, text, :class:`pathlib.Path` (read
        asynchronously), file-like objects with ``read()``, and sync or async
        iterables of byte chunks.

        Raises:
            InvalidArgumentError: If the payload type is not supported
        """
        if isinstance(blob, (bytes, bytearray, memoryview)):
            return bytes(blob)

        if isinstance(blob, str):
            return blob.encode('utf-8')

        if isinstance(blob, Path):
            try:
                async with aiofiles.open(blob, 'rb') as f:
                    return await f.read()
            except OSError as e:
                raise InvalidArgumentError(
                    f"Cannot read upload source {blob}: {e}",
                    error_code="SOURCE_UNREADABLE",
                ) from e

        read = getattr(blob, 'read', None)
        if callable(read):
            data = read()
            if hasattr(data, '__await__'):
                data = await data
            return await self.materialize(data)

        if isinstance(blob, AsyncIterable):
            chunks = []
            async for chunk in blob:
                chunks.append(self._chunk_bytes(chunk))
            return b''.join(chunks)

        if isinstance(blob, Iterable):
            return b''.join(self._chunk_bytes(chunk) for chunk in blob)

        raise InvalidArgumentError(
            f"Unsupported upload payload type: {type(blob).__name__}",
            error_code="UNSUPPORTED_PAYLOAD",
        )

    @staticmethod
    def _chunk_bytes(chunk: Any) -> bytes:
        if isinstance(chunk, (bytes, bytearray, memoryview)):
            return bytes(chunk)
        if isinstance(chunk, str):
            return chunk.encode('utf-8')
        raise InvalidArgumentError(
            f"Unsupported payload chunk type: {type(chunk).__name__}",
            error_code="UNSUPPORTED_PAYLOAD",
        )


# Global instance for convenience
file_utils = FileUtils()


def get_decode_strategy(name: str) -> DecodeStrategy:
    return file_utils.get_decode_strategy(name)


def get_content_type(name: str, override: Optional[str] = None) -> str:
    return override or file_utils.get_content_type(name)
