"""
approval_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a frozen ``EngineConfig``.

Architecture position:
    Configuration -- sits above ``approval_kernel`` and below
    ``approval_services``.  The kernel MUST NEVER import from this package.

Resolution order for the configuration file:
    1. The ``path`` argument.
    2. The ``APPROVAL_CONFIG_PATH`` environment variable.
    3. ``approval_config/sets/default.yaml``.

Failure modes:
    - ``FileNotFoundError`` -- the resolved file does not exist.
    - ``ConfigurationError`` -- YAML or structural validation failures.

Audit relevance:
    Every successful call emits an ``APPROVAL_CONFIG_TRACE`` log entry with
    the file path and checksum.
"""

from __future__ import annotations

import os
from pathlib import Path

from approval_config.bridges import build_lifecycles
from approval_config.loader import load_engine_config
from approval_config.schema import EngineConfig, RequestTypeConfig
from approval_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

CONFIG_PATH_ENV = "APPROVAL_CONFIG_PATH"


def get_active_config(path: Path | str | None = None) -> EngineConfig:
    """Load the active engine configuration."""
    if path is None:
        path = os.environ.get(CONFIG_PATH_ENV) or _DEFAULT_CONFIG_PATH
    path = Path(path)

    config = load_engine_config(path)

    _logger.info(
        "APPROVAL_CONFIG_TRACE",
        extra={
            "config_path": str(path),
            "checksum": config.checksum,
            "default_page_size": config.default_page_size,
            "max_page_size": config.max_page_size,
            "request_type_count": len(config.request_types),
        },
    )
    return config


__all__ = [
    "CONFIG_PATH_ENV",
    "EngineConfig",
    "RequestTypeConfig",
    "build_lifecycles",
    "get_active_config",
]
