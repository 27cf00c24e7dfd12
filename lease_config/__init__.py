"""
lease_config -- single public entrypoint for lease kernel configuration.

Responsibility:
    Provides the way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a frozen ``LeaseKernelConfig``.

Architecture position:
    Configuration -- sits above ``lease_kernel``.  The kernel MUST NEVER
    import from ``lease_config``; ``lease_config.bridges`` translates the
    config into kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``KeyError`` / ``ValueError`` -- missing or invalid fields.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``LEASE_CONFIG_TRACE`` log entry with the config id, version and
    checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from lease_config.loader import load_yaml_file, parse_config
from lease_config.schema import (
    DatabaseSettings,
    LeaseKernelConfig,
    LoggingSettings,
    PaymentPolicySettings,
)

_logger = logging.getLogger("lease_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | str | None = None) -> LeaseKernelConfig:
    """
    Load, validate and return the active configuration.

    Args:
        path: YAML file to load.  Defaults to the packaged defaults.yaml.

    Returns:
        LeaseKernelConfig with ``checksum`` set.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(config_path))

    _logger.info(
        "LEASE_CONFIG_TRACE",
        extra={
            "trace_type": "LEASE_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source": str(config_path),
            "grace_day": config.payment_policy.grace_day,
            "sentinel_offset_days": config.payment_policy.sentinel_offset_days,
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DatabaseSettings",
    "LeaseKernelConfig",
    "LoggingSettings",
    "PaymentPolicySettings",
    "get_active_config",
]
