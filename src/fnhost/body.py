from __future__ import annotations

import codecs
import json
from typing import Any

from aws_lambda_powertools import Logger
from starlette.requests import Request

from .config import Settings
from .exceptions import MalformedPayloadError, PayloadTooLargeError, UnsupportedCharsetError

logger = Logger()

JSON_TYPE = "application/json"
OCTET_STREAM_TYPE = "application/octet-stream"


def parse_content_type(value: str | None) -> tuple[str, dict[str, str]]:
    """Split a Content-Type header into its lower-cased media type and parameters."""
    if not value:
        return "", {}
    media_type, *raw_params = value.split(";")
    params: dict[str, str] = {}
    for raw in raw_params:
        key, sep, val = raw.partition("=")
        if sep:
            params[key.strip().lower()] = val.strip().strip('"')
    return media_type.strip().lower(), params


def is_json_type(media_type: str) -> bool:
    return media_type == JSON_TYPE or (media_type.startswith("application/") and media_type.endswith("+json"))


async def read_limited(request: Request, limit: int) -> bytes:
    """Read the request body, refusing anything larger than ``limit`` bytes."""
    declared = request.headers.get("content-length", "").strip()
    if declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(limit, int(declared))

    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise PayloadTooLargeError(limit, received)
        chunks.append(chunk)
    return b"".join(chunks)


def _codec(charset: str) -> str:
    try:
        return codecs.lookup(charset).name
    except LookupError as exc:
        raise UnsupportedCharsetError(charset) from exc


def _reject_constant(name: str) -> Any:
    raise MalformedPayloadError(f"malformed JSON body: unexpected token {name}")


def _decode_json(raw: bytes, charset: str) -> Any:
    if not charset.lower().startswith("utf-"):
        raise UnsupportedCharsetError(charset)
    try:
        text = raw.decode(_codec(charset))
    except UnicodeDecodeError as exc:
        raise MalformedPayloadError(f"invalid {charset} in JSON body") from exc
    if not text.strip():
        return {}
    # Only objects and arrays are accepted at the top level.
    if text.lstrip()[0] not in "{[":
        raise MalformedPayloadError("JSON body must be an object or an array")
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise MalformedPayloadError(f"malformed JSON body: {exc.msg}") from exc


async def decode_body(request: Request, settings: Settings) -> Any:
    """Pick one decoding strategy for the request body and apply it.

    Raw mode wins over everything. Otherwise the declared content type selects
    JSON, raw bytes or text; any other type is passed through as received.
    """
    if settings.raw_body:
        return await read_limited(request, settings.max_raw_size)

    media_type, params = parse_content_type(request.headers.get("content-type"))

    if is_json_type(media_type):
        raw = await read_limited(request, settings.max_json_size)
        return _decode_json(raw, params.get("charset", "utf-8"))

    if media_type == OCTET_STREAM_TYPE:
        return await read_limited(request, settings.max_raw_size)

    if media_type.startswith("text/"):
        codec = _codec(params.get("charset", "utf-8"))
        raw = await read_limited(request, settings.max_raw_size)
        return raw.decode(codec, errors="replace")

    logger.debug("No body strategy for content type", extra={"content_type": media_type or None})
    return await read_limited(request, settings.max_raw_size)
