from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from starlette.requests import Request


def _collapse(items: list[tuple[str, str]], join: str | None = None) -> dict[str, Any]:
    collected: dict[str, list[str]] = {}
    for key, value in items:
        collected.setdefault(key, []).append(value)
    if join is not None:
        return {key: join.join(values) for key, values in collected.items()}
    return {key: values[0] if len(values) == 1 else values for key, values in collected.items()}


class FunctionEvent(BaseModel):
    """Read-only snapshot of one inbound request, handed to the handler."""

    model_config = ConfigDict(frozen=True)

    body: Any = None
    headers: dict[str, str] = Field(default_factory=dict)
    method: str
    query: dict[str, str | list[str]] = Field(default_factory=dict)
    path: str = "/"

    @classmethod
    def from_request(cls, request: Request, body: Any) -> FunctionEvent:
        # Header names arrive lower-cased; repeated headers are joined like a proxy would.
        return cls(
            body=body,
            headers=_collapse(request.headers.items(), join=", "),
            method=request.method,
            query=_collapse(request.query_params.multi_items()),
            path=request.url.path,
        )
