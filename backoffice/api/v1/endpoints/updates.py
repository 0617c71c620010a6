"""
Company update and metric API endpoints.

- GET  /companies/{company_id}/updates                       — List updates
- POST /companies/{company_id}/updates                       — Record an update
- GET  /updates/{update_id}                                  — One update
- POST /updates/{update_id}/metrics                          — Append metrics
- GET  /companies/{company_id}/metrics/latest                — Latest value per metric
- GET  /companies/{company_id}/metrics/{metric_name}/history — One metric over time
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.deps import get_current_user
from backoffice.db.session import get_db
from backoffice.models.company import PortfolioCompany
from backoffice.models.update import CompanyUpdate, UpdateType
from backoffice.models.user import User
from backoffice.repositories.company_repo import CompanyRepository
from backoffice.repositories.update_repo import UpdateRepository
from backoffice.schemas.common import ErrorResponse, ValidationErrorResponse
from backoffice.schemas.update import (
    LatestMetricResponse,
    MetricResponse,
    MetricsAppend,
    UpdateCreate,
    UpdateResponse,
)
from backoffice.services.update_service import UpdateService

router = APIRouter()


def _get_update_service(db: AsyncSession = Depends(get_db)) -> UpdateService:
    return UpdateService(
        update_repo=UpdateRepository(CompanyUpdate, db),
        company_repo=CompanyRepository(PortfolioCompany, db),
    )


@router.get(
    "/companies/{company_id}/updates",
    response_model=List[UpdateResponse],
    summary="List company updates",
    description="Newest update first, optionally filtered by type and date range.",
    responses={404: {"model": ErrorResponse, "description": "Company not found"}},
)
async def list_updates(
    company_id: UUID,
    update_type: Optional[UpdateType] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user: User = Depends(get_current_user),
    service: UpdateService = Depends(_get_update_service),
) -> List[UpdateResponse]:
    updates = await service.list_updates(company_id, update_type, start_date, end_date)
    return [UpdateResponse.model_validate(u) for u in updates]


@router.post(
    "/companies/{company_id}/updates",
    response_model=UpdateResponse,
    status_code=201,
    summary="Record a company update",
    responses={
        404: {"model": ErrorResponse, "description": "Company not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def create_update(
    company_id: UUID,
    update_in: UpdateCreate,
    user: User = Depends(get_current_user),
    service: UpdateService = Depends(_get_update_service),
) -> UpdateResponse:
    return UpdateResponse.model_validate(await service.create_update(user, company_id, update_in))


@router.get(
    "/updates/{update_id}",
    response_model=UpdateResponse,
    summary="Get a company update",
    responses={404: {"model": ErrorResponse, "description": "Update not found"}},
)
async def get_update(
    update_id: UUID,
    user: User = Depends(get_current_user),
    service: UpdateService = Depends(_get_update_service),
) -> UpdateResponse:
    return UpdateResponse.model_validate(await service.get_update(update_id))


@router.post(
    "/updates/{update_id}/metrics",
    response_model=UpdateResponse,
    status_code=201,
    summary="Append metrics to an update",
    responses={404: {"model": ErrorResponse, "description": "Update not found"}},
)
async def add_metrics(
    update_id: UUID,
    body: MetricsAppend,
    user: User = Depends(get_current_user),
    service: UpdateService = Depends(_get_update_service),
) -> UpdateResponse:
    update = await service.add_metrics_to_update(user, update_id, body.metrics)
    return UpdateResponse.model_validate(update)


@router.get(
    "/companies/{company_id}/metrics/latest",
    response_model=List[LatestMetricResponse],
    summary="Latest value of every metric",
    responses={404: {"model": ErrorResponse, "description": "Company not found"}},
)
async def get_latest_metrics(
    company_id: UUID,
    user: User = Depends(get_current_user),
    service: UpdateService = Depends(_get_update_service),
) -> List[LatestMetricResponse]:
    return await service.get_latest_metrics(company_id)


@router.get(
    "/companies/{company_id}/metrics/{metric_name}/history",
    response_model=List[MetricResponse],
    summary="Metric history",
    description="Values of one metric, oldest first.",
    responses={404: {"model": ErrorResponse, "description": "Company not found"}},
)
async def get_metric_history(
    company_id: UUID,
    metric_name: str,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user: User = Depends(get_current_user),
    service: UpdateService = Depends(_get_update_service),
) -> List[MetricResponse]:
    metrics = await service.get_metric_history(company_id, metric_name, start_date, end_date)
    return [MetricResponse.model_validate(m) for m in metrics]
