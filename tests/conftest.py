from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from fnhost.api import create_app
from fnhost.config import Settings
from fnhost.metrics import MetricsSink


@pytest.fixture()
def project_root() -> Path:
    return Path(__file__).resolve().parent.parent


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None, raw_body=False, max_json_size="100kb", max_raw_size="100kb")


@pytest.fixture()
def make_client(settings: Settings) -> Callable[..., TestClient]:
    def factory(handler: Callable[..., Any], **overrides: Any) -> TestClient:
        cfg = Settings(_env_file=None, **{**settings.model_dump(), **overrides})
        app = create_app(cfg, handler=handler, metrics=MetricsSink(default_collectors=False))
        return TestClient(app)

    return factory
