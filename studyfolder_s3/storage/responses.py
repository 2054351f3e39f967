"""
Response normalization for presigned storage requests.

The storage endpoint may answer in JSON or XML depending on the service and
the presigning strategy, so the wire format is sniffed from the body rather
than trusted from headers. Whatever the format, callers receive one
:class:`NormalizedResponse` and only branch on ``ok`` and the body's shape.
"""

import json
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx
import structlog

from ..exceptions import StorageTransportError
from ..utils.validators import expect_safe_object
from .signing import OperationDescriptor, RequestSigner


logger = structlog.get_logger(__name__)


class BodyFormat(str, Enum):
    """Wire format detected in a response body."""

    JSON = "json"
    XML = "xml"
    TEXT = "text"


@dataclass(frozen=True)
class ParsedBody:
    """A response body tagged with the format it was parsed from."""

    format: BodyFormat
    value: Any


@dataclass(frozen=True)
class NormalizedResponse:
    """Transport success flag plus the parsed body."""

    ok: bool
    status_code: int
    body: Any
    format: BodyFormat = BodyFormat.TEXT

    def error_pair(self) -> tuple[str, str] | None:
        """Return the service's ``(code, message)`` when the body carries one."""
        return extract_error(self.body)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def element_to_value(element: ET.Element) -> Any:
    """
    Convert an XML element into plain Python values.

    Leaf elements become their text (``""`` when empty); elements with
    children become dicts keyed by child tag, and repeated child tags collect
    into lists in document order. Namespaces and attributes are dropped.
    """
    children = list(element)
    if not children:
        return element.text or ""

    result: dict[str, Any] = {}
    for child in children:
        tag = _local_name(child.tag)
        value = element_to_value(child)
        if tag in result:
            existing = result[tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[tag] = [existing, value]
        else:
            result[tag] = value
    return result


def parse_xml(text: str) -> dict[str, Any]:
    """Parse an XML document into ``{root_tag: value}``."""
    root = ET.fromstring(text)
    return {_local_name(root.tag): element_to_value(root)}


def classify_body(text: str) -> ParsedBody:
    """
    Sniff and parse a response body.

    A leading ``[`` or ``{`` means JSON and a leading ``<?xml`` means XML;
    anything else, including a body that fails to parse, is wrapped as
    ``{"text": text}``.
    """
    head = text.lstrip("\ufeff \t\r\n")

    if head[:1] in ("[", "{"):
        try:
            return ParsedBody(BodyFormat.JSON, json.loads(head))
        except json.JSONDecodeError as e:
            logger.debug("Response body looked like JSON but did not parse", error=str(e))
    elif head[:5].lower() == "<?xml":
        try:
            return ParsedBody(BodyFormat.XML, parse_xml(head))
        except ET.ParseError as e:
            logger.debug("Response body looked like XML but did not parse", error=str(e))

    return ParsedBody(BodyFormat.TEXT, {"text": text})


def extract_error(body: Any) -> tuple[str, str] | None:
    """Find an S3-style ``Code``/``Message`` pair in a normalized body."""
    if not isinstance(body, dict):
        return None

    candidate = body.get("Error", body)
    if isinstance(candidate, dict):
        code = candidate.get("Code") or candidate.get("code")
        message = candidate.get("Message") or candidate.get("message")
        if code and message is not None:
            return str(code), str(message)
    return None


class ResponseNormalizer:
    """Signs, sends and normalizes one storage request at a time."""

    def __init__(
        self,
        signer: RequestSigner,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        self.signer = signer
        self.timeout = timeout
        self._http_client = http_client

    async def fetch(
        self,
        descriptor: OperationDescriptor,
        method: str | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        raw: bool = False,
    ) -> NormalizedResponse | httpx.Response:
        """
        Perform one presigned request.

        Args:
            descriptor: Operation to sign and send
            method: HTTP method override (defaults to the operation's method)
            content: Request body
            headers: Extra request headers
            raw: Return the untouched httpx response instead of normalizing it

        Returns:
            The raw httpx response when ``raw`` is set, else a NormalizedResponse

        Raises:
            StorageTransportError: If the HTTP exchange itself fails
            UnsafeObjectError: If a parsed body carries a disallowed key
        """
        url = self.signer.sign(descriptor)
        response = await self._send(method or descriptor.http_method, url, content, headers, descriptor)

        if raw:
            return response

        return self.normalize(response)

    def normalize(self, response: httpx.Response) -> NormalizedResponse:
        parsed = classify_body(response.text)
        if parsed.format is not BodyFormat.TEXT:
            expect_safe_object(parsed.value)

        return NormalizedResponse(
            ok=response.is_success,
            status_code=response.status_code,
            body=parsed.value,
            format=parsed.format,
        )

    async def _send(
        self,
        method: str,
        url: str,
        content: bytes | None,
        headers: dict[str, str] | None,
        descriptor: OperationDescriptor,
    ) -> httpx.Response:
        try:
            if self._http_client is not None:
                response = await self._http_client.request(method, url, content=content, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, content=content, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(
                "Storage request failed",
                operation=descriptor.operation.value,
                key=descriptor.key,
                prefix=descriptor.prefix,
                error=str(e),
            )
            raise StorageTransportError(
                f"{descriptor.operation.value} request failed: {e}",
                error_code="TRANSPORT",
                details={"key": descriptor.key, "prefix": descriptor.prefix},
            ) from e

        logger.debug(
            "Storage response received",
            operation=descriptor.operation.value,
            key=descriptor.key,
            prefix=descriptor.prefix,
            status_code=response.status_code,
        )
        return response
