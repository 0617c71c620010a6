"""
Company update repository.

Listings return updates newest first; metric history returns metrics oldest
first, ready for trend charts.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from backoffice.models.update import CompanyUpdate, UpdateMetric, UpdateType
from backoffice.repositories.base import BaseRepository


class UpdateRepository(BaseRepository[CompanyUpdate]):
    """Concrete repository for :class:`CompanyUpdate` and its metrics."""

    async def get_with_metrics(self, update_id: UUID) -> Optional[CompanyUpdate]:
        stmt = (
            select(self.model)
            .where(self.model.id == update_id)
            .options(selectinload(self.model.metrics))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_updates(
        self,
        company_id: Optional[UUID] = None,
        update_type: Optional[UpdateType] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[CompanyUpdate]:
        stmt = select(self.model)
        if company_id is not None:
            stmt = stmt.where(self.model.company_id == company_id)
        if update_type is not None:
            stmt = stmt.where(self.model.update_type == update_type)
        if start is not None:
            stmt = stmt.where(self.model.update_date >= start)
        if end is not None:
            stmt = stmt.where(self.model.update_date <= end)
        stmt = (
            stmt.options(selectinload(self.model.metrics))
            .order_by(self.model.update_date.desc(), self.model.created_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def metric_history(
        self,
        company_id: UUID,
        metric_name: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[UpdateMetric]:
        stmt = (
            select(UpdateMetric)
            .join(self.model, UpdateMetric.update_id == self.model.id)
            .where(self.model.company_id == company_id, UpdateMetric.name == metric_name)
        )
        if start is not None:
            stmt = stmt.where(self.model.update_date >= start)
        if end is not None:
            stmt = stmt.where(self.model.update_date <= end)
        stmt = stmt.order_by(UpdateMetric.metric_date, UpdateMetric.created_at)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
