"""MongoDB index creation."""

from __future__ import annotations

import logging

import pymongo

from agentbridge.infra.db.bindings import BindingRepo

logger = logging.getLogger(__name__)


async def run_migrations(db) -> None:
    """Create indexes on startup."""
    logger.info("Running MongoDB migrations...")

    bindings = db[BindingRepo.COLLECTION]
    await bindings.create_index([("user_id", pymongo.ASCENDING)], unique=True)

    runtime = db[BindingRepo.RUNTIME_COLLECTION]
    await runtime.create_index(
        [("user_id", pymongo.ASCENDING), ("agent", pymongo.ASCENDING)], unique=True
    )
    await runtime.create_index([("stopped_at", pymongo.ASCENDING)])

    logger.info("MongoDB migrations complete")
