from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Union

from aws_lambda_powertools import Logger
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from starlette.responses import Response

logger = Logger()

JSON_MEDIA_TYPE = "application/json"
TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"
BINARY_MEDIA_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class Structured:
    value: Any


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Raw:
    value: bytes


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Failure:
    error: Any
    message: str | None = None


Payload = Union[Structured, Text, Raw, Empty]
Outcome = Union[Payload, Failure]


@dataclass(frozen=True)
class Settlement:
    """An outcome together with the status and headers in effect when it settled."""

    outcome: Outcome
    status: int
    headers: dict[str, Any]


def classify(value: Any) -> Payload:
    """Decide once, when the handler produces a value, how it will be written."""
    if value is None:
        return Empty()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Raw(bytes(value))
    if isinstance(value, str):
        return Text(value)
    if isinstance(value, (Mapping, list, tuple, BaseModel)):
        return Structured(value)
    return Text(str(value))


def error_text(error: Any) -> str:
    return str(error)


def _serialize(payload: Payload) -> tuple[bytes, str | None]:
    if isinstance(payload, Structured):
        text = json.dumps(
            jsonable_encoder(payload.value),
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        )
        return text.encode("utf-8"), JSON_MEDIA_TYPE
    if isinstance(payload, Text):
        return payload.value.encode("utf-8"), TEXT_MEDIA_TYPE
    if isinstance(payload, Raw):
        return payload.value, BINARY_MEDIA_TYPE
    return b"", None


BODILESS_HEADERS = frozenset({"content-type", "content-length", "transfer-encoding"})


def is_bodiless(status: int) -> bool:
    return status < HTTPStatus.OK or status in (HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED)


def _build(status: int, headers: Mapping[str, Any], body: bytes, media_type: str | None) -> Response:
    bodiless = is_bodiless(status)
    if bodiless:
        body, media_type = b"", None
    response = Response(content=body, status_code=status)
    target = response.headers
    for name, value in headers.items():
        if bodiless and name.lower() in BODILESS_HEADERS:
            continue
        del target[name]
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            target.append(name, str(item))
    if media_type is not None and "content-type" not in target:
        target["content-type"] = media_type
    return response


def render(settlement: Settlement) -> Response:
    """Turn a settled outcome into the single HTTP response for the request.

    Controller headers are written before defaults so a handler-provided
    ``Content-Type`` always wins.
    """
    outcome = settlement.outcome
    if isinstance(outcome, Failure):
        if isinstance(outcome.error, BaseException):
            logger.error(
                "Handler failed",
                exc_info=outcome.error,
                extra={"fail_message": outcome.message},
            )
        else:
            logger.error("Handler failed", extra={"error": error_text(outcome.error), "fail_message": outcome.message})
        body = error_text(outcome.error).encode("utf-8")
        return _build(settlement.status, settlement.headers, body, TEXT_MEDIA_TYPE)

    try:
        body, media_type = _serialize(outcome)
    except (TypeError, ValueError) as exc:
        logger.exception("Cannot serialize handler result")
        return _build(HTTPStatus.INTERNAL_SERVER_ERROR, {}, error_text(exc).encode("utf-8"), TEXT_MEDIA_TYPE)
    return _build(settlement.status, settlement.headers, body, media_type)
