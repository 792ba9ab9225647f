"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from resmap.models.config import (
    APIConfig,
    GraphConfig,
    LogConfig,
    ResMapConfig,
    SessionConfig,
)

LAYOUT_NAMES = ("grouped", "flat")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"RESMAP_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_layout(value: str) -> str:
    if value.lower() not in LAYOUT_NAMES:
        raise ValueError(f"Invalid layout: {value}. Must be one of {LAYOUT_NAMES}")
    return value.lower()


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> ResMapConfig:
    """Load configuration from RESMAP_* environment variables."""
    return ResMapConfig(
        graph=GraphConfig(
            layout=_validate_layout(_env("LAYOUT", "grouped")),
        ),
        sessions=SessionConfig(
            max_sessions=_env_int("SESSION_LIMIT", 256, min_val=1, max_val=10000),
        ),
        api=APIConfig(
            host=_env("API_HOST", "0.0.0.0"),
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
