"""
Generic async repository (Data Access Layer).

Concrete repositories inherit from ``BaseRepository[T]`` and add the
entity-specific queries.  The session is injected per request / per CLI
command, so one repository instance never outlives its unit of work.

Transactions:
- ``create`` / ``update`` / ``delete`` commit immediately (single-row writes).
- ``create_many`` writes several rows in one commit; the accounting engine
  uses it for "capital call + one response per LP".
- ``stage`` flushes without committing so a service can run a follow-up
  query inside the same transaction and finish with ``commit``.
- Any ``SQLAlchemyError`` during commit rolls the session back before
  re-raising.  ``IntegrityError`` is still re-raised so each service can map
  it to the right domain error.
"""

import logging
from decimal import Decimal
from typing import Any, Generic, Iterable, Optional, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlmodel import SQLModel

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)


def numeric_sum(value: Any, places: str = "0.01") -> Decimal:
    """
    Normalise a SUM() over a NUMERIC column.

    PostgreSQL returns ``Decimal``, SQLite returns ``float`` and an empty set
    returns NULL; all three come back as a ``Decimal`` at the column's scale.
    """
    if value is None:
        return Decimal("0")
    return Decimal(str(value)).quantize(Decimal(places))


class BaseRepository(Generic[ModelType]):
    """
    Generic CRUD repository for SQLModel entities.

    Parameters
    ----------
    model : Type[ModelType]
        The SQLModel class this repository manages.
    db : AsyncSession
        An active async database session.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    # ── Transaction helpers ──

    async def commit(self) -> None:
        """Commit the session, rolling back and re-raising on any DB error."""
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(
                "%s during commit for %s; rolled back", type(exc).__name__, self.model.__name__
            )
            raise

    async def rollback(self) -> None:
        await self.db.rollback()

    async def stage(self, *entities: SQLModel) -> None:
        """Add ``entities`` and flush them without committing."""
        self.db.add_all(list(entities))
        await self.db.flush()

    # ── Reads ──

    async def get(self, id: Any) -> Optional[ModelType]:
        """Fetch a single entity by primary key.  Returns ``None`` if not found."""
        return await self.db.get(self.model, id)

    async def count(self) -> int:
        stmt = select(func.count()).select_from(self.model)
        result = await self.db.execute(stmt)
        return result.scalar_one()

    # ── Writes ──

    async def create(self, obj_in: ModelType) -> ModelType:
        """Insert a new entity, commit, and return the refreshed instance."""
        self.db.add(obj_in)
        await self.commit()
        await self.db.refresh(obj_in)
        return obj_in

    async def create_many(self, entities: Iterable[SQLModel]) -> None:
        """Insert several rows (of any model) in a single commit."""
        self.db.add_all(list(entities))
        await self.commit()

    async def update(self, entity: ModelType) -> ModelType:
        """Persist changes made to ``entity`` (plus anything staged) and refresh it."""
        merged = await self.db.merge(entity)
        await self.commit()
        await self.db.refresh(merged)
        return merged

    async def delete(self, id: Any) -> bool:
        """Delete by primary key.  Returns ``False`` if the row did not exist."""
        entity = await self.db.get(self.model, id)
        if entity is None:
            return False
        await self.db.delete(entity)
        await self.commit()
        return True
