from __future__ import annotations

import uvicorn
from aws_lambda_powertools import Logger

from .api import create_app
from .config import get_settings

logger = Logger()


def main() -> None:
    settings = get_settings()
    app = create_app(settings)
    logger.info("Function host listening", extra={"port": settings.http_port})
    uvicorn.run(app, host="0.0.0.0", port=settings.http_port)


if __name__ == "__main__":
    main()
