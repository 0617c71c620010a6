"""
Task repository.

Listings sort open work first: by status in workflow order, then highest
priority, then earliest due date (tasks without one last).
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import case
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from backoffice.models.task import OPEN_TASK_STATUSES, Task, TaskPriority, TaskStatus
from backoffice.repositories.base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Concrete repository for :class:`Task` entities."""

    def _with_refs(self, stmt):
        return stmt.options(
            selectinload(self.model.company),
            selectinload(self.model.assigned_to),
            selectinload(self.model.created_by),
        ).execution_options(populate_existing=True)

    def _by_due_date(self):
        return (self.model.due_date.is_(None), self.model.due_date, self.model.created_at)

    async def get_with_refs(self, task_id: UUID) -> Optional[Task]:
        stmt = self._with_refs(select(self.model).where(self.model.id == task_id))
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_tasks(
        self,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        company_id: Optional[UUID] = None,
        assigned_to_id: Optional[UUID] = None,
        created_by_id: Optional[UUID] = None,
    ) -> List[Task]:
        stmt = select(self.model)
        if status is not None:
            stmt = stmt.where(self.model.status == status)
        if priority is not None:
            stmt = stmt.where(self.model.priority == priority)
        if company_id is not None:
            stmt = stmt.where(self.model.company_id == company_id)
        if assigned_to_id is not None:
            stmt = stmt.where(self.model.assigned_to_id == assigned_to_id)
        if created_by_id is not None:
            stmt = stmt.where(self.model.created_by_id == created_by_id)
        status_rank = case(
            *[(self.model.status == s, rank) for rank, s in enumerate(TaskStatus)]
        )
        priority_rank = case(
            *[(self.model.priority == p, rank) for rank, p in enumerate(TaskPriority)]
        )
        stmt = self._with_refs(
            stmt.order_by(status_rank, priority_rank.desc(), *self._by_due_date())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def open_for_company(self, company_id: UUID, limit: int = 5) -> List[Task]:
        """TODO / IN_PROGRESS tasks about the company, soonest due first."""
        stmt = (
            select(self.model)
            .where(
                self.model.company_id == company_id,
                self.model.status.in_(OPEN_TASK_STATUSES),
            )
            .order_by(*self._by_due_date())
            .limit(limit)
        )
        result = await self.db.execute(self._with_refs(stmt))
        return list(result.scalars().all())
