from __future__ import annotations

import asyncio
import functools
import inspect
from collections.abc import Callable
from typing import Any

from aws_lambda_powertools import Logger
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from .context import FunctionContext
from .models import FunctionEvent
from .resolver import render

logger = Logger()

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def is_async_callable(obj: Any) -> bool:
    while isinstance(obj, functools.partial):
        obj = obj.func
    return inspect.iscoroutinefunction(obj) or inspect.iscoroutinefunction(getattr(obj, "__call__", None))


def accepts_callback(handler: Callable[..., Any]) -> bool:
    """True when the handler takes a third positional argument for the callback."""
    try:
        params = list(inspect.signature(handler).parameters.values())
    except (TypeError, ValueError):
        return False
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return True
    return len([p for p in params if p.kind in _POSITIONAL]) >= 3


class FunctionInvoker:
    """Runs the handler for one event and returns exactly one response.

    The first of these settles the request: an explicit ``succeed``/``fail``
    (or callback) from the handler, the handler returning, or the handler
    raising. Anything that happens afterwards is absorbed.
    """

    def __init__(self, handler: Callable[..., Any]):
        self.handler = handler
        self._is_async = is_async_callable(handler)
        self._wants_callback = accepts_callback(handler)
        self._pending: set[asyncio.Future[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def _call(self, event: FunctionEvent, context: FunctionContext) -> Any:
        args: tuple[Any, ...] = (event, context)
        if self._wants_callback:
            args += (context.callback,)
        if self._is_async:
            result = self.handler(*args)
        else:
            result = await run_in_threadpool(self.handler, *args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _handler_done(self, context: FunctionContext, task: asyncio.Future[Any]) -> None:
        self._pending.discard(task)
        settled = context.completion.settled

        if task.cancelled():
            if not settled:
                context.fail(RuntimeError("handler was cancelled"))
            return

        error = task.exception()
        if error is not None:
            if settled:
                logger.warning("Handler raised after the request completed", exc_info=error)
            context.fail(error)
        elif not settled:
            context.succeed(task.result())

    async def invoke(self, event: FunctionEvent) -> Response:
        context = FunctionContext()
        task = asyncio.ensure_future(self._call(event, context))
        self._pending.add(task)
        task.add_done_callback(functools.partial(self._handler_done, context))

        settlement = await context.completion.wait()
        if not task.done():
            logger.debug("Responding before handler returned", extra={"path": event.path})
        return render(settlement)

    async def drain(self) -> None:
        """Wait for handler calls that outlived their response."""
        if self._pending:
            logger.info("Waiting for running handlers", extra={"count": len(self._pending)})
            await asyncio.gather(*self._pending, return_exceptions=True)
