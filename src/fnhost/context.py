from __future__ import annotations

import asyncio
import threading
from collections.abc import Mapping
from http import HTTPStatus
from typing import Any

from aws_lambda_powertools import Logger

from .resolver import Failure, Outcome, Settlement, classify

logger = Logger()

DEFAULT_STATUS = HTTPStatus.OK


class Completion:
    """One-shot settlement of a request's outcome.

    The first ``resolve`` wins; later calls only bump ``attempts``. It may be
    resolved from the event loop or from a worker thread running a sync
    handler.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future[Settlement] = self._loop.create_future()
        self._lock = threading.Lock()
        self._settled = False
        self.attempts = 0

    @property
    def settled(self) -> bool:
        return self._settled

    @property
    def future(self) -> asyncio.Future[Settlement]:
        return self._future

    def resolve(self, settlement: Settlement) -> bool:
        with self._lock:
            self.attempts += 1
            if self._settled:
                return False
            self._settled = True
        self._loop.call_soon_threadsafe(self._set, settlement)
        return True

    def _set(self, settlement: Settlement) -> None:
        if not self._future.done():
            self._future.set_result(settlement)

    async def wait(self) -> Settlement:
        return await self._future


class FunctionContext:
    """Per-request response controller handed to the handler.

    Status and headers may be changed freely until the request completes.
    Completion happens through ``succeed``, ``fail`` or ``callback``; only the
    first one produces the response.
    """

    def __init__(self, completion: Completion | None = None):
        self._status: int = DEFAULT_STATUS
        self._headers: dict[str, Any] = {}
        self.completion = completion or Completion()

    def get_status(self) -> int:
        return self._status

    def set_status(self, status_code: int) -> FunctionContext:
        self._status = int(status_code)
        return self

    def get_headers(self) -> dict[str, Any]:
        return self._headers

    def set_headers(self, headers: Mapping[str, Any]) -> FunctionContext:
        self._headers = dict(headers)
        return self

    @property
    def completion_count(self) -> int:
        return self.completion.attempts

    def succeed(self, value: Any = None) -> None:
        self._complete(classify(value))

    def fail(self, error: Any, message: str | None = None) -> None:
        if not self.completion.settled and self._status == DEFAULT_STATUS:
            self._status = HTTPStatus.INTERNAL_SERVER_ERROR
        self._complete(Failure(error, message))

    def callback(self, error: Any = None, value: Any = None) -> None:
        """Node-style completion: ``callback(error)`` or ``callback(None, value)``."""
        if error is not None:
            self.fail(error)
        else:
            self.succeed(value)

    def _complete(self, outcome: Outcome) -> None:
        settlement = Settlement(outcome, self._status, dict(self._headers))
        if not self.completion.resolve(settlement):
            logger.debug(
                "Completion already settled; ignoring",
                extra={"attempts": self.completion.attempts, "outcome": type(outcome).__name__},
            )
