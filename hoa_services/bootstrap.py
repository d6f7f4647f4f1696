"""
hoa_services.bootstrap -- process start-up for the ledger.

Initializes logging, the engine from the active configuration, the schema
and the immutability listeners, then returns a ready JournalEntryLedger.
"""

from __future__ import annotations

from hoa_config import LedgerConfig, get_active_config
from hoa_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from hoa_kernel.db.immutability import register_immutability_listeners
from hoa_kernel.domain.clock import Clock
from hoa_kernel.logging_config import configure_logging, get_logger
from hoa_services.ledger import JournalEntryLedger

logger = get_logger("services.bootstrap")


def bootstrap_ledger(
    config: LedgerConfig | None = None,
    clock: Clock | None = None,
    create_schema: bool = True,
) -> JournalEntryLedger:
    """
    Build a JournalEntryLedger backed by the configured database.

    Args:
        config: Configuration to use; defaults to get_active_config().
        clock: Clock for all timestamps; defaults to the system clock.
        create_schema: Create missing tables before returning.
    """
    configure_logging()
    config = config or get_active_config()

    engine = init_engine_from_url(
        config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
    )
    if create_schema:
        create_tables(engine)
    register_immutability_listeners()

    logger.info(
        "ledger_bootstrapped",
        extra={"config_id": config.config_id, "dialect": engine.dialect.name},
    )
    return JournalEntryLedger(get_session_factory(), config, clock)
