"""
Database model registry and schema bootstrap.

Importing :mod:`backoffice.models` registers every table with SQLModel's
metadata; :func:`create_tables` must only run after that import.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import SQLModel

import backoffice.models  # noqa: F401

logger = logging.getLogger(__name__)


async def create_tables(engine: AsyncEngine) -> None:
    """Create any missing tables (idempotent; no migrations are applied)."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables ready (%d tables)", len(SQLModel.metadata.tables))


async def drop_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    logger.warning("Dropped all tables")
