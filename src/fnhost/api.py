from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from aws_lambda_powertools import Logger
from fastapi import FastAPI, Request
from starlette.responses import PlainTextResponse, Response

from .body import decode_body
from .config import Settings, get_settings
from .exceptions import BodyDecodeError
from .invoker import FunctionInvoker
from .loader import load_handler
from .metrics import MetricsSink
from .models import FunctionEvent

logger = Logger()

FUNCTION_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Function host ready", extra={"handler": app.state.settings.handler})
    try:
        yield
    finally:
        await app.state.invoker.drain()


def create_app(
    settings: Settings | None = None,
    handler: Callable[..., Any] | None = None,
    metrics: MetricsSink | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    if handler is None:
        handler = load_handler(settings.handler)

    # Docs routes would shadow handler paths.
    app = FastAPI(
        title="fnhost",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.metrics = metrics or MetricsSink()
    app.state.invoker = FunctionInvoker(handler)

    @app.middleware("http")
    async def count_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        sink: MetricsSink = request.app.state.metrics
        try:
            response = await call_next(request)
        except Exception:
            sink.record_completion(request.method, request.url.path, 500)
            raise
        sink.record_completion(request.method, request.url.path, response.status_code)
        return response

    @app.exception_handler(BodyDecodeError)
    async def reject_body(request: Request, exc: BodyDecodeError) -> PlainTextResponse:
        logger.warning(
            "Rejected request body",
            extra={"path": request.url.path, "status": int(exc.status_code), "reason": str(exc)},
        )
        return PlainTextResponse(str(exc), status_code=exc.status_code)

    @app.get("/metrics")
    def metrics_report(request: Request) -> Response:
        sink: MetricsSink = request.app.state.metrics
        return Response(content=sink.render_report(), media_type=sink.content_type)

    @app.api_route("/{path:path}", methods=FUNCTION_METHODS)
    async def invoke_function(request: Request) -> Response:
        body = await decode_body(request, request.app.state.settings)
        event = FunctionEvent.from_request(request, body)
        return await request.app.state.invoker.invoke(event)

    return app
