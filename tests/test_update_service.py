"""
Unit tests for UpdateService.

All repository calls are mocked.  Tests cover:
- create_update: numeric vs text metrics, metric dates, permissions
- add_metrics_to_update: metrics inherit the update's date
- get_latest_metrics: newest value per metric name
- get_metric_history: date-range coercion and company check
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from backoffice.core.exceptions import (
    CompanyNotFoundError,
    InvalidDateError,
    NotFoundException,
    PermissionDeniedError,
)
from backoffice.models.update import CompanyUpdate, UpdateMetric, UpdateType
from backoffice.schemas.update import MetricInput, UpdateCreate
from backoffice.services.update_service import UpdateService

from .conftest import COMPANY_ID, make_company

# ────────────────────────────────────────────────────────────────────────────
# Fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def update_repo():
    return AsyncMock()


@pytest.fixture()
def company_repo():
    repo = AsyncMock()
    repo.get.return_value = make_company()
    return repo


@pytest.fixture()
def service(update_repo, company_repo):
    return UpdateService(update_repo, company_repo)


def _update(update_date: date, **metrics) -> CompanyUpdate:
    update = CompanyUpdate(
        company_id=COMPANY_ID, update_date=update_date, update_type=UpdateType.QUARTERLY
    )
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for offset, (name, value) in enumerate(metrics.items()):
        number = value if isinstance(value, Decimal) else None
        update.metrics.append(
            UpdateMetric(
                update_id=update.id,
                name=name,
                value_number=number,
                value_text=None if number is not None else value,
                metric_date=update_date,
                created_at=stamp + timedelta(seconds=offset),
            )
        )
    return update


# ────────────────────────────────────────────────────────────────────────────
# Commands
# ────────────────────────────────────────────────────────────────────────────


class TestCreateUpdate:
    @pytest.mark.asyncio
    async def test_numbers_and_text_stored_separately(self, service, update_repo, manager):
        update_in = UpdateCreate(
            update_date=date(2024, 3, 31),
            update_type=UpdateType.QUARTERLY,
            metrics=[
                MetricInput(name="ARR", value=Decimal("1200000")),
                MetricInput(name="Runway", value="18 months"),
            ],
        )

        await service.create_update(manager, COMPANY_ID, update_in)

        update, arr, runway = update_repo.create_many.call_args.args[0]
        assert update.update_type == UpdateType.QUARTERLY
        assert (arr.value_number, arr.value_text) == (Decimal("1200000"), None)
        assert (runway.value_number, runway.value_text) == (None, "18 months")
        assert arr.metric_date == runway.metric_date == date(2024, 3, 31)
        assert arr.update_id == update.id
        update_repo.get_with_metrics.assert_awaited_once_with(update.id)

    @pytest.mark.asyncio
    async def test_unknown_company(self, service, company_repo, update_repo, admin):
        company_repo.get.return_value = None

        with pytest.raises(CompanyNotFoundError):
            await service.create_update(admin, uuid4(), UpdateCreate(update_date=date(2024, 3, 31)))
        update_repo.create_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_read_only_cannot_write(self, service, analyst):
        with pytest.raises(PermissionDeniedError):
            await service.create_update(
                analyst, COMPANY_ID, UpdateCreate(update_date=date(2024, 3, 31))
            )


class TestAddMetrics:
    @pytest.mark.asyncio
    async def test_metrics_take_update_date(self, service, update_repo, admin):
        existing = _update(date(2024, 6, 30))
        update_repo.get_with_metrics.return_value = existing

        await service.add_metrics_to_update(
            admin, existing.id, [MetricInput(name="Headcount", value=Decimal("42"))]
        )

        (row,) = update_repo.create_many.call_args.args[0]
        assert row.metric_date == date(2024, 6, 30)
        assert row.update_id == existing.id

    @pytest.mark.asyncio
    async def test_missing_update(self, service, update_repo, admin):
        update_repo.get_with_metrics.return_value = None

        with pytest.raises(NotFoundException):
            await service.add_metrics_to_update(
                admin, uuid4(), [MetricInput(name="ARR", value=Decimal("1"))]
            )


# ────────────────────────────────────────────────────────────────────────────
# Queries
# ────────────────────────────────────────────────────────────────────────────


class TestLatestMetrics:
    @pytest.mark.asyncio
    async def test_newest_value_per_name(self, service, update_repo):
        q2 = _update(date(2024, 6, 30), ARR=Decimal("1500000"))
        q1 = _update(date(2024, 3, 31), ARR=Decimal("1200000"), Headcount=Decimal("40"))
        update_repo.list_updates.return_value = [q2, q1]

        latest = await service.get_latest_metrics(COMPANY_ID)

        assert [m.name for m in latest] == ["ARR", "Headcount"]
        assert latest[0].value == Decimal("1500000")
        assert latest[0].metric_date == date(2024, 6, 30)
        assert latest[0].update_id == q2.id
        assert latest[1].value == Decimal("40")

    @pytest.mark.asyncio
    async def test_text_metric(self, service, update_repo):
        update_repo.list_updates.return_value = [_update(date(2024, 3, 31), Runway="18 months")]

        (runway,) = await service.get_latest_metrics(COMPANY_ID)

        assert runway.value == "18 months"

    @pytest.mark.asyncio
    async def test_no_updates(self, service, update_repo):
        update_repo.list_updates.return_value = []

        assert await service.get_latest_metrics(COMPANY_ID) == []


class TestMetricHistory:
    @pytest.mark.asyncio
    async def test_passes_range(self, service, update_repo):
        update_repo.metric_history.return_value = []

        await service.get_metric_history(COMPANY_ID, "ARR", "2024-01-01", "2024-12-31")

        update_repo.metric_history.assert_awaited_once_with(
            COMPANY_ID, "ARR", date(2024, 1, 1), date(2024, 12, 31)
        )

    @pytest.mark.asyncio
    async def test_inverted_range(self, service, update_repo):
        with pytest.raises(InvalidDateError):
            await service.get_metric_history(COMPANY_ID, "ARR", "2024-12-31", "2024-01-01")
        update_repo.metric_history.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_company(self, service, company_repo):
        company_repo.get.return_value = None

        with pytest.raises(CompanyNotFoundError):
            await service.get_metric_history(uuid4(), "ARR")
