"""
Authorisation policy.

Every entry point (REST routes, MCP endpoints, CLI commands) asks these
functions; none of them re-implements role checks.

| Role          | Create fund | View fund       | Mutate fund        | Delete fund |
|---------------|-------------|-----------------|--------------------|-------------|
| SUPER_ADMIN   | yes         | all             | all                | yes         |
| FUND_MANAGER  | yes         | all             | funds they own     | no          |
| ANALYST       | no          | all             | no                 | no          |
| READ_ONLY     | no          | all             | no                 | no          |
| USER          | no          | funds they own  | no                 | no          |

"Mutate" covers the fund record itself and everything hanging off it:
limited partners, capital calls, payments and NAV calculations.

Check-ins and tasks are open to every role except READ_ONLY.  A task can be
moved along by its creator, its assignee, a FUND_MANAGER or a SUPER_ADMIN.
"""

from typing import Optional
from uuid import UUID

from backoffice.core.exceptions import PermissionDeniedError
from backoffice.models.fund import Fund
from backoffice.models.task import Task
from backoffice.models.user import User, UserRole

_READ_ALL_ROLES = frozenset(
    {UserRole.SUPER_ADMIN, UserRole.FUND_MANAGER, UserRole.ANALYST, UserRole.READ_ONLY}
)
_PORTFOLIO_WRITE_ROLES = frozenset({UserRole.SUPER_ADMIN, UserRole.FUND_MANAGER})


def is_owner(user: User, fund: Fund) -> bool:
    return fund.owner_id == user.id


def can_create_fund(user: User) -> bool:
    return user.role in (UserRole.SUPER_ADMIN, UserRole.FUND_MANAGER)


def can_view_fund(user: User, fund: Fund) -> bool:
    return user.role in _READ_ALL_ROLES or is_owner(user, fund)


def can_mutate_fund(user: User, fund: Fund) -> bool:
    if user.role == UserRole.SUPER_ADMIN:
        return True
    return user.role == UserRole.FUND_MANAGER and is_owner(user, fund)


def can_delete_fund(user: User) -> bool:
    return user.role == UserRole.SUPER_ADMIN


def can_administer(user: User) -> bool:
    """Cross-fund maintenance such as the status sweep over every fund."""
    return user.role == UserRole.SUPER_ADMIN


def can_write_portfolio(user: User) -> bool:
    """Companies, investments and company updates are shared across funds."""
    return user.role in _PORTFOLIO_WRITE_ROLES


def can_record_activity(user: User) -> bool:
    """Create check-ins and tasks."""
    return user.role != UserRole.READ_ONLY


def can_manage_tasks_of_others(user: User) -> bool:
    """Filter by, or update, tasks created by or assigned to someone else."""
    return user.role in _PORTFOLIO_WRITE_ROLES


def can_update_task(user: User, task: Task) -> bool:
    return can_manage_tasks_of_others(user) or user.id in (task.created_by_id, task.assigned_to_id)


def visible_owner_filter(user: User) -> Optional[UUID]:
    """Owner id to filter fund listings by, or ``None`` to list every fund."""
    return None if user.role in _READ_ALL_ROLES else user.id


def require(allowed: bool, action: str, resource: Optional[str] = None) -> None:
    """Raise :class:`PermissionDeniedError` unless ``allowed``."""
    if not allowed:
        raise PermissionDeniedError(action, resource)
