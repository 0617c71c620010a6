"""
Task API endpoints.

- GET   /tasks                  — List tasks (filters: status, priority, company, users)
- POST  /tasks                  — Create a task
- GET   /tasks/{task_id}        — One task
- PATCH /tasks/{task_id}/status — Move a task to another status
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.deps import get_current_user
from backoffice.db.session import get_db
from backoffice.models.company import PortfolioCompany
from backoffice.models.task import Task, TaskPriority, TaskStatus
from backoffice.models.user import User
from backoffice.repositories.company_repo import CompanyRepository
from backoffice.repositories.task_repo import TaskRepository
from backoffice.repositories.user_repo import UserRepository
from backoffice.schemas.common import ErrorResponse, ValidationErrorResponse
from backoffice.schemas.task import TaskCreate, TaskResponse, TaskStatusUpdate
from backoffice.services.task_service import TaskService

router = APIRouter()


def get_task_service(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(
        task_repo=TaskRepository(Task, db),
        company_repo=CompanyRepository(PortfolioCompany, db),
        user_repo=UserRepository(User, db),
    )


@router.get(
    "",
    response_model=List[TaskResponse],
    summary="List tasks",
    description="Ordered by status (TODO first), then highest priority, then due date.",
    responses={403: {"model": ErrorResponse, "description": "Filter on another user"}},
)
async def list_tasks(
    status: Optional[TaskStatus] = Query(None),
    priority: Optional[TaskPriority] = Query(None),
    company_id: Optional[UUID] = Query(None),
    assigned_to_id: Optional[UUID] = Query(None),
    created_by_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> List[TaskResponse]:
    tasks = await service.list_tasks(
        user, status, priority, company_id, assigned_to_id, created_by_id
    )
    return [TaskResponse.model_validate(t) for t in tasks]


@router.post(
    "",
    response_model=TaskResponse,
    status_code=201,
    summary="Create a task",
    responses={
        403: {"model": ErrorResponse, "description": "READ_ONLY callers cannot create"},
        404: {"model": ErrorResponse, "description": "Company or assignee not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def create_task(
    task_in: TaskCreate,
    user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    return TaskResponse.model_validate(await service.create_task(user, task_in))


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Get a task",
    responses={404: {"model": ErrorResponse, "description": "Task not found"}},
)
async def get_task(
    task_id: UUID,
    user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    return TaskResponse.model_validate(await service.get_task(task_id))


@router.patch(
    "/{task_id}/status",
    response_model=TaskResponse,
    summary="Update task status",
    responses={
        403: {"model": ErrorResponse, "description": "Caller may not update this task"},
        404: {"model": ErrorResponse, "description": "Task not found"},
    },
)
async def update_task_status(
    task_id: UUID,
    body: TaskStatusUpdate,
    user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    return TaskResponse.model_validate(await service.update_status(user, task_id, body.status))
