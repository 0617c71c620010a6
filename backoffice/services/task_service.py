"""
Task service.

Tasks are follow-ups, optionally about a portfolio company and optionally
assigned to a user.  Every role but READ_ONLY may create them; only the
creator, the assignee, a FUND_MANAGER or a SUPER_ADMIN may move one along.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from backoffice.core import permissions
from backoffice.core.exceptions import (
    BusinessRuleViolation,
    CompanyNotFoundError,
    NotFoundException,
)
from backoffice.models.task import Task, TaskPriority, TaskStatus
from backoffice.models.user import User
from backoffice.repositories.company_repo import CompanyRepository
from backoffice.repositories.task_repo import TaskRepository
from backoffice.repositories.user_repo import UserRepository
from backoffice.schemas.task import TaskCreate, TaskCreateByName

logger = logging.getLogger(__name__)


class TaskService:
    """Creates, lists and progresses tasks."""

    def __init__(
        self,
        task_repo: TaskRepository,
        company_repo: CompanyRepository,
        user_repo: UserRepository,
    ):
        self._repo = task_repo
        self._company_repo = company_repo
        self._user_repo = user_repo

    # ── Commands ──

    async def create_task(self, user: User, task_in: TaskCreate) -> Task:
        """
        Create a TODO task owned by ``user``.

        A referenced company or assignee must exist (404 otherwise).
        """
        permissions.require(permissions.can_record_activity(user), "create tasks")
        if task_in.company_id is not None and not await self._company_repo.get(
            task_in.company_id
        ):
            raise CompanyNotFoundError(task_in.company_id)
        if task_in.assigned_to_id is not None and not await self._user_repo.get(
            task_in.assigned_to_id
        ):
            raise NotFoundException("User", task_in.assigned_to_id)

        task = Task(
            **task_in.model_dump(),
            status=TaskStatus.TODO,
            created_by_id=user.id,
        )
        try:
            await self._repo.create(task)
        except IntegrityError as exc:
            await self._repo.rollback()
            logger.warning("IntegrityError creating task: %s", exc)
            raise BusinessRuleViolation(
                "Task could not be created; a referenced company or user may have been "
                "removed, or a database constraint was violated."
            )
        logger.info(
            "Created %s task %s for %s (assigned to %s)",
            task.priority.value,
            task.id,
            task.company_id or "no company",
            task.assigned_to_id or "nobody",
        )
        return await self.get_task(task.id)

    async def create_task_by_name(self, user: User, task_in: TaskCreateByName) -> Task:
        """:meth:`create_task` with the company given by name and the assignee by email."""
        permissions.require(permissions.can_record_activity(user), "create tasks")
        company_id = None
        if task_in.company_name:
            company = await self._company_repo.get_by_name(task_in.company_name)
            if not company:
                raise CompanyNotFoundError(task_in.company_name)
            company_id = company.id
        assigned_to_id = None
        if task_in.assign_to_email:
            assignee = await self._user_repo.get_by_email(task_in.assign_to_email)
            if not assignee:
                raise NotFoundException("User", task_in.assign_to_email)
            assigned_to_id = assignee.id

        return await self.create_task(
            user,
            TaskCreate(
                description=task_in.description,
                due_date=task_in.due_date,
                priority=task_in.priority,
                company_id=company_id,
                assigned_to_id=assigned_to_id,
            ),
        )

    async def update_status(self, user: User, task_id: UUID, status: TaskStatus) -> Task:
        task = await self.get_task(task_id)
        permissions.require(
            permissions.can_update_task(user, task), "update this task", f"task '{task.id}'"
        )
        previous = task.status
        task.status = status
        await self._repo.update(task)
        logger.info("Task %s moved from %s to %s", task.id, previous.value, status.value)
        return await self.get_task(task.id)

    # ── Queries ──

    async def get_task(self, task_id: UUID) -> Task:
        task = await self._repo.get_with_refs(task_id)
        if not task:
            raise NotFoundException("Task", task_id)
        return task

    async def list_tasks(
        self,
        user: User,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        company_id: Optional[UUID] = None,
        assigned_to_id: Optional[UUID] = None,
        created_by_id: Optional[UUID] = None,
    ) -> List[Task]:
        """
        Tasks by status (workflow order), then highest priority, then due date.

        Filtering by another user's assigned or created tasks needs a
        FUND_MANAGER or SUPER_ADMIN.
        """
        for other_id, action in (
            (assigned_to_id, "list tasks assigned to other users"),
            (created_by_id, "list tasks created by other users"),
        ):
            if other_id is not None and other_id != user.id:
                permissions.require(permissions.can_manage_tasks_of_others(user), action)
        return await self._repo.list_tasks(
            status=status,
            priority=priority,
            company_id=company_id,
            assigned_to_id=assigned_to_id,
            created_by_id=created_by_id,
        )
