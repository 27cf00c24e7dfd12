"""
Configuration Loader (``lease_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``lease_config.schema`` dataclasses.  Callers obtain configuration through
``lease_config.get_active_config()``, not through this module.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required fields have no silent defaults.
* ``compute_checksum`` is deterministic for identical input.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Out-of-range values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

import yaml

from lease_config.schema import (
    DatabaseSettings,
    LeaseKernelConfig,
    LoggingSettings,
    PaymentPolicySettings,
)

_VALID_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    """Parse DatabaseSettings from a dict.  ``url`` is required."""
    url = data["url"]
    if not isinstance(url, str) or not url.strip():
        raise ValueError("database.url must be a non-empty string")
    settings = DatabaseSettings(
        url=url,
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 20)),
        max_overflow=int(data.get("max_overflow", 10)),
        create_tables=bool(data.get("create_tables", False)),
    )
    if settings.pool_size < 1:
        raise ValueError(f"database.pool_size must be positive, got {settings.pool_size}")
    if settings.max_overflow < 0:
        raise ValueError(
            f"database.max_overflow must not be negative, got {settings.max_overflow}"
        )
    return settings


def parse_logging(data: dict[str, Any]) -> LoggingSettings:
    """Parse LoggingSettings from a dict."""
    level = str(data.get("level", "INFO")).upper()
    if level not in _VALID_LEVELS:
        raise ValueError(
            f"logging.level must be one of {sorted(_VALID_LEVELS)}, got {level!r}"
        )
    return LoggingSettings(level=level)


def parse_payment_policy(data: dict[str, Any]) -> PaymentPolicySettings:
    """Parse PaymentPolicySettings from a dict."""
    settings = PaymentPolicySettings(
        grace_day=int(data.get("grace_day", 5)),
        sentinel_offset_days=int(data.get("sentinel_offset_days", 1)),
    )
    if not 1 <= settings.grace_day <= 31:
        raise ValueError(
            f"payment_policy.grace_day must be within 1..31, got {settings.grace_day}"
        )
    if settings.sentinel_offset_days < 1:
        raise ValueError(
            "payment_policy.sentinel_offset_days must be at least 1, "
            f"got {settings.sentinel_offset_days}"
        )
    return settings


def parse_config(data: dict[str, Any]) -> LeaseKernelConfig:
    """
    Parse the root configuration dict.

    Postconditions:
        - ``checksum`` is the SHA-256 of the canonical JSON of ``data``.
    """
    return LeaseKernelConfig(
        config_id=data["config_id"],
        version=int(data["version"]),
        database=parse_database(data["database"]),
        logging=parse_logging(data.get("logging") or {}),
        payment_policy=parse_payment_policy(data.get("payment_policy") or {}),
        checksum=compute_checksum(data),
    )


def log_level(settings: LoggingSettings) -> int:
    """Numeric ``logging`` level for the configured level name."""
    return logging.getLevelName(settings.level)


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
