"""
Company update service.

Updates are append-only reports from portfolio companies.  Each carries named
metrics stamped with the update's date; metrics appended later inherit that
date too, so a metric's history always lines up with the reporting period.
"""

import logging
from decimal import Decimal
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from backoffice.core import permissions
from backoffice.core.exceptions import (
    BusinessRuleViolation,
    CompanyNotFoundError,
    NotFoundException,
)
from backoffice.models.update import CompanyUpdate, UpdateMetric, UpdateType
from backoffice.models.user import User
from backoffice.repositories.company_repo import CompanyRepository
from backoffice.repositories.update_repo import UpdateRepository
from backoffice.schemas.update import LatestMetricResponse, MetricInput, UpdateCreate
from backoffice.services.nav_service import DateLike, coerce_date_range

logger = logging.getLogger(__name__)


def _metric_row(update: CompanyUpdate, metric: MetricInput) -> UpdateMetric:
    number = metric.value if isinstance(metric.value, Decimal) else None
    return UpdateMetric(
        update_id=update.id,
        name=metric.name,
        value_number=number,
        value_text=None if number is not None else str(metric.value),
        metric_date=update.update_date,
    )


class UpdateService:
    """Creates company updates and answers metric queries."""

    def __init__(self, update_repo: UpdateRepository, company_repo: CompanyRepository):
        self._repo = update_repo
        self._company_repo = company_repo

    async def _require_company(self, company_id: UUID) -> None:
        if not await self._company_repo.get(company_id):
            raise CompanyNotFoundError(company_id)

    # ── Commands ──

    async def create_update(
        self, user: User, company_id: UUID, update_in: UpdateCreate
    ) -> CompanyUpdate:
        permissions.require(permissions.can_write_portfolio(user), "record company updates")
        await self._require_company(company_id)

        update = CompanyUpdate(
            company_id=company_id,
            update_date=update_in.update_date,
            update_type=update_in.update_type,
            notes=update_in.notes,
        )
        metrics = [_metric_row(update, m) for m in update_in.metrics]
        try:
            await self._repo.create_many([update, *metrics])
        except IntegrityError as exc:
            await self._repo.rollback()
            logger.warning("IntegrityError creating update for company %s: %s", company_id, exc)
            raise BusinessRuleViolation(
                "Company update violates a database constraint. Check all fields."
            )
        logger.info(
            "Recorded %s update %s for company %s with %d metrics",
            update.update_type.value,
            update.id,
            company_id,
            len(metrics),
        )
        return await self._repo.get_with_metrics(update.id)

    async def add_metrics_to_update(
        self, user: User, update_id: UUID, metrics: Sequence[MetricInput]
    ) -> CompanyUpdate:
        """Append metrics to an existing update; they take the update's date."""
        permissions.require(permissions.can_write_portfolio(user), "record company updates")
        update = await self.get_update(update_id)
        rows = [_metric_row(update, m) for m in metrics]
        try:
            await self._repo.create_many(rows)
        except IntegrityError as exc:
            await self._repo.rollback()
            logger.warning("IntegrityError adding metrics to update %s: %s", update_id, exc)
            raise BusinessRuleViolation("Metrics violate a database constraint.")
        logger.info("Added %d metrics to update %s", len(rows), update_id)
        return await self._repo.get_with_metrics(update.id)

    # ── Queries ──

    async def get_update(self, update_id: UUID) -> CompanyUpdate:
        update = await self._repo.get_with_metrics(update_id)
        if not update:
            raise NotFoundException("CompanyUpdate", update_id)
        return update

    async def list_updates(
        self,
        company_id: Optional[UUID] = None,
        update_type: Optional[UpdateType] = None,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> List[CompanyUpdate]:
        """Updates newest first within the optional inclusive date range."""
        start_date, end_date = coerce_date_range(start, end)
        if company_id is not None:
            await self._require_company(company_id)
        return await self._repo.list_updates(
            company_id=company_id, update_type=update_type, start=start_date, end=end_date
        )

    async def get_latest_metrics(self, company_id: UUID) -> List[LatestMetricResponse]:
        """The most recent value of every metric the company has reported."""
        updates = await self.list_updates(company_id=company_id)
        latest: dict = {}
        # Newest update first, so the first sighting of a name wins.
        for update in updates:
            for metric in sorted(update.metrics, key=lambda m: m.created_at, reverse=True):
                if metric.name not in latest:
                    latest[metric.name] = LatestMetricResponse(
                        name=metric.name,
                        value=metric.value,
                        metric_date=metric.metric_date,
                        update_id=update.id,
                    )
        return [latest[name] for name in sorted(latest)]

    async def get_metric_history(
        self,
        company_id: UUID,
        metric_name: str,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> List[UpdateMetric]:
        """Values of one metric over time, oldest first."""
        start_date, end_date = coerce_date_range(start, end)
        await self._require_company(company_id)
        return await self._repo.metric_history(company_id, metric_name, start_date, end_date)
