"""
LeaseKernelConfig schema.

Typed, frozen form of the YAML configuration.  The loader parses YAML into
these types; the bridges turn them into kernel inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """Engine settings passed to ``init_engine_from_url``."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    create_tables: bool = False


@dataclass(frozen=True)
class LoggingSettings:
    """Level of the ``lease_kernel`` logger hierarchy."""

    level: str = "INFO"


@dataclass(frozen=True)
class PaymentPolicySettings:
    """Tunable constants of the rent calculation."""

    grace_day: int = 5
    sentinel_offset_days: int = 1


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LeaseKernelConfig:
    """Complete configuration for one kernel deployment."""

    config_id: str
    version: int
    database: DatabaseSettings
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    payment_policy: PaymentPolicySettings = field(default_factory=PaymentPolicySettings)
    checksum: str = ""
