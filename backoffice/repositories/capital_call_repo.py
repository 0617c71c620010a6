"""
Capital call repository.

Every read that feeds status derivation eager-loads the responses (and the
LP behind each response), because async sessions cannot lazy-load.
"""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from backoffice.models.capital_call import (
    CapitalCall,
    CapitalCallResponse,
    CapitalCallStatus,
)
from backoffice.repositories.base import BaseRepository, numeric_sum


class CapitalCallRepository(BaseRepository[CapitalCall]):
    """Concrete repository for :class:`CapitalCall` and its response rows."""

    def _with_responses(self):
        return selectinload(self.model.responses).selectinload(
            CapitalCallResponse.limited_partner
        )

    async def get_with_responses(
        self, call_id: UUID, for_update: bool = False
    ) -> Optional[CapitalCall]:
        """
        Load a call with its responses.

        ``for_update=True`` takes a row lock on the call (PostgreSQL
        ``SELECT ... FOR UPDATE``) so concurrent payments against the same
        call serialise their status recomputation.
        """
        stmt = (
            select(self.model)
            .where(self.model.id == call_id)
            .options(self._with_responses())
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_calls(self, fund_id: Optional[UUID] = None) -> List[CapitalCall]:
        """Calls with responses, newest call date first."""
        stmt = select(self.model).options(self._with_responses())
        if fund_id is not None:
            stmt = stmt.where(self.model.fund_id == fund_id)
        stmt = stmt.order_by(
            self.model.call_date.desc(), self.model.created_at.desc()
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_unsettled_ids(self, fund_id: Optional[UUID] = None) -> List[UUID]:
        """Ids of calls whose stored status is anything but FULLY_PAID."""
        stmt = select(self.model.id).where(self.model.status != CapitalCallStatus.FULLY_PAID)
        if fund_id is not None:
            stmt = stmt.where(self.model.fund_id == fund_id)
        stmt = stmt.order_by(self.model.call_date)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def sum_paid(self, call_id: UUID) -> Decimal:
        """Σ amount_paid over the call's responses, read from the database."""
        stmt = select(func.sum(CapitalCallResponse.amount_paid)).where(
            CapitalCallResponse.capital_call_id == call_id
        )
        result = await self.db.execute(stmt)
        return numeric_sum(result.scalar_one_or_none())
