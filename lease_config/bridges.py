"""
Config -> Kernel Bridges.

Functions that convert a LeaseKernelConfig into kernel inputs.  These live
in lease_config because the kernel must NEVER import lease_config.

Usage:
    from lease_config import get_active_config
    from lease_config.bridges import build_payment_policy, initialize_kernel

    config = get_active_config()
    initialize_kernel(config)
    policy = build_payment_policy(config)
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from lease_config.loader import log_level
from lease_config.schema import LeaseKernelConfig
from lease_kernel.db.engine import create_tables, init_engine_from_url
from lease_kernel.db.immutability import register_immutability_listeners
from lease_kernel.domain.calculator import PaymentPolicy
from lease_kernel.logging_config import configure_logging


def build_payment_policy(config: LeaseKernelConfig) -> PaymentPolicy:
    """PaymentPolicy for the configured grace day and sentinel offset."""
    return PaymentPolicy(
        grace_day=config.payment_policy.grace_day,
        sentinel_offset_days=config.payment_policy.sentinel_offset_days,
    )


def initialize_kernel(config: LeaseKernelConfig) -> Engine:
    """
    Bring the kernel up from configuration.

    Configures structured logging, initializes the engine, registers the
    ORM immutability listeners and, when ``database.create_tables`` is set,
    creates the schema.

    Returns:
        The initialized Engine.
    """
    configure_logging(level=log_level(config.logging))

    db = config.database
    engine = init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
    )
    register_immutability_listeners()
    if db.create_tables:
        create_tables()
    return engine
