from __future__ import annotations

from typing import Any

from aws_lambda_powertools import Logger
from mangum import Mangum
from mangum.types import LambdaContext

from .api import create_app

logger = Logger()
_handler: Mangum | None = None


def get_handler() -> Mangum:
    global _handler
    if _handler is None:
        _handler = Mangum(create_app(), lifespan="off")
        logger.info("Created Mangum adapter")
    return _handler


def lambda_handler(event: dict[str, Any], context: LambdaContext) -> Any:
    return get_handler()(event, context)
