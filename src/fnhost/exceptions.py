from __future__ import annotations

from http import HTTPStatus


class FunctionHostError(Exception):
    """Base class for errors raised by the function host."""


class HandlerLoadError(FunctionHostError):
    """Raised when the configured handler cannot be imported."""

    def __init__(self, entrypoint: str, reason: str):
        self.entrypoint = entrypoint
        super().__init__(f"Cannot load handler {entrypoint!r}: {reason}")


class BodyDecodeError(FunctionHostError):
    """A request body was rejected before reaching the handler."""

    status_code: int = HTTPStatus.BAD_REQUEST


class PayloadTooLargeError(BodyDecodeError):
    status_code = HTTPStatus.REQUEST_ENTITY_TOO_LARGE

    def __init__(self, limit: int, length: int | None = None):
        self.limit = limit
        self.length = length
        super().__init__("request entity too large")


class MalformedPayloadError(BodyDecodeError):
    status_code = HTTPStatus.BAD_REQUEST


class UnsupportedCharsetError(BodyDecodeError):
    status_code = HTTPStatus.UNSUPPORTED_MEDIA_TYPE

    def __init__(self, charset: str):
        self.charset = charset
        super().__init__(f'unsupported charset "{charset.upper()}"')
