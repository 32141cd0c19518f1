from __future__ import annotations

from typing import Any


def handle(event, context) -> dict[str, Any]:
    """Echo the request back as JSON."""
    body = event.body
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    return {
        "method": event.method,
        "path": event.path,
        "query": event.query,
        "body": body,
    }
