from __future__ import annotations

import importlib
import importlib.util
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from aws_lambda_powertools import Logger

from .exceptions import HandlerLoadError

logger = Logger()


def _import_file(entrypoint: str, file_path: Path) -> Any:
    if not file_path.is_file():
        raise HandlerLoadError(entrypoint, f"{file_path} does not exist")
    module_name = f"fnhost_function_{file_path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, str(file_path))
    if spec is None or spec.loader is None:
        raise HandlerLoadError(entrypoint, f"cannot load module from {file_path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


def load_handler(entrypoint: str) -> Callable[..., Any]:
    """Resolve ``"package.module:attr"`` or ``"path/to/file.py:attr"`` to a callable."""
    module_ref, _, attr = entrypoint.partition(":")
    if not module_ref or not attr:
        raise HandlerLoadError(entrypoint, "expected 'module:function'")

    try:
        if module_ref.endswith(".py"):
            module = _import_file(entrypoint, Path(module_ref).expanduser().resolve())
        else:
            module = importlib.import_module(module_ref)
    except HandlerLoadError:
        raise
    except Exception as exc:
        raise HandlerLoadError(entrypoint, f"{type(exc).__name__}: {exc}") from exc

    handler = getattr(module, attr, None)
    if handler is None:
        raise HandlerLoadError(entrypoint, f"module has no attribute {attr!r}")
    if not callable(handler):
        raise HandlerLoadError(entrypoint, f"{attr!r} is not callable")

    logger.info("Loaded handler", extra={"entrypoint": entrypoint})
    return handler
