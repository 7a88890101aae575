"""
Configuration Module
====================

Loads s3hub settings from a YAML file.

Example
-------
>>> from s3hub.core.config import load_config
>>>
>>> config = load_config("s3hub.yaml")
>>> config.max_workers
5

A configuration file looks like::

    profile: production
    region: ap-northeast-1
    max_workers: 8
    max_attempts: 5
    retry_delay_sec: 3
    log_level: DEBUG

Every key is optional. Command line flags override file values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from s3hub.core.exceptions import ConfigError
from s3hub.core.models import (
    DEFAULT_MAX_WORKERS,
    DELETE_OBJECTS_DELAY_TIME_SEC,
    MAX_DELETE_OBJECTS_BATCH_SIZE,
    MAX_DELETE_OBJECTS_RETRY_COUNT,
    new_delete_retry_count,
)
from s3hub.core.retry import DEFAULT_MAX_ATTEMPTS

# Module logger
logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """s3hub configuration."""

    profile: Optional[str] = None
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    max_workers: int = DEFAULT_MAX_WORKERS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay_sec: int = DELETE_OBJECTS_DELAY_TIME_SEC
    batch_size: int = MAX_DELETE_OBJECTS_BATCH_SIZE
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def merge(self, **overrides: Any) -> "Config":
        """Return a copy with every non-None override applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return _parse_config(values)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_config(path: Optional[str] = None) -> Config:
    """Load config from YAML file or return defaults.

    Args:
        path: Path to YAML config file. If None, returns default config.

    Returns:
        Config instance

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or holds
            out-of-range values
    """
    if path is None:
        return Config()

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {path}", details={"path": path})

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", details={"path": path}) from e

    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file must contain a mapping, got {type(data).__name__}",
            details={"path": path},
        )
    return _parse_config(data)


def _parse_config(data: Dict[str, Any]) -> Config:
    """Parse config dict into Config dataclass."""
    known = {f.name for f in fields(Config)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    max_workers = _positive_int(data, "max_workers", DEFAULT_MAX_WORKERS)
    retry_delay_sec = _positive_int(data, "retry_delay_sec", DELETE_OBJECTS_DELAY_TIME_SEC)
    requested_attempts = _positive_int(data, "max_attempts", DEFAULT_MAX_ATTEMPTS)
    max_attempts = max(1, new_delete_retry_count(requested_attempts))
    if max_attempts != requested_attempts:
        logger.warning(
            f"max_attempts {requested_attempts} exceeds the limit; "
            f"using {MAX_DELETE_OBJECTS_RETRY_COUNT}"
        )
    requested_batch_size = _positive_int(data, "batch_size", MAX_DELETE_OBJECTS_BATCH_SIZE)
    batch_size = min(requested_batch_size, MAX_DELETE_OBJECTS_BATCH_SIZE)
    if batch_size != requested_batch_size:
        logger.warning(
            f"batch_size {requested_batch_size} exceeds the DeleteObjects limit; "
            f"using {MAX_DELETE_OBJECTS_BATCH_SIZE}"
        )

    log_level = str(data.get("log_level", "INFO")).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(
            f"Invalid log_level '{log_level}'",
            details={"allowed": list(LOG_LEVELS)},
        )

    return Config(
        profile=data.get("profile"),
        region=data.get("region"),
        endpoint_url=data.get("endpoint_url"),
        max_workers=max_workers,
        max_attempts=max_attempts,
        retry_delay_sec=retry_delay_sec,
        batch_size=batch_size,
        log_level=log_level,
        log_file=data.get("log_file"),
    )


def _positive_int(data: Dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    if value < 1:
        raise ConfigError(f"{key} must be at least 1, got {value}")
    return value
