from __future__ import annotations

import re
from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SIZE_RE = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)\s*(b|kb|mb|gb|tb|pb)?\s*$", re.IGNORECASE)
_UNITS = {
    "b": 1,
    "kb": 1 << 10,
    "mb": 1 << 20,
    "gb": 1 << 30,
    "tb": 1 << 40,
    "pb": 1 << 50,
}


def parse_size(value: Any) -> int:
    """Convert a human size such as ``"100kb"`` or ``"1.5mb"`` to bytes."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid size: {value!r}")
    if isinstance(value, int):
        size = value
    else:
        match = _SIZE_RE.match(str(value))
        if match is None:
            raise ValueError(f"Invalid size: {value!r}")
        number, unit = match.groups()
        size = int(float(number) * _UNITS[(unit or "b").lower()])
    if size < 0:
        raise ValueError(f"Size must not be negative: {value!r}")
    return size


class Settings(BaseSettings):
    raw_body: bool = Field(default=False, description="Pass every request body through as bytes")
    max_json_size: int = Field(default=parse_size("100kb"), description="Upper bound for JSON bodies")
    max_raw_size: int = Field(default=parse_size("100kb"), description="Upper bound for raw and text bodies")
    http_port: int = Field(default=3000, description="Listener port")
    handler: str = Field(default="function/handler.py:handle", description="Handler entrypoint")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("raw_body", mode="before")
    @classmethod
    def _parse_raw_body(cls, value: Any) -> bool:
        # Only the exact string "true" switches raw mode on.
        if isinstance(value, bool):
            return value
        return value == "true"

    @field_validator("max_json_size", "max_raw_size", mode="before")
    @classmethod
    def _parse_size(cls, value: Any) -> int:
        return parse_size(value)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
