from datetime import datetime
from typing import Optional

import typer
from rich.table import Table

from backoffice.cli_commands._runtime import console, parse_uuid, run, task_service
from backoffice.models.task import TaskPriority, TaskStatus
from backoffice.schemas.task import TaskCreateByName


def register(task_app: typer.Typer) -> None:
    @task_app.command("list")
    def list_tasks(
        status: Optional[TaskStatus] = typer.Option(None, "--status"),
        priority: Optional[TaskPriority] = typer.Option(None, "--priority"),
        mine: bool = typer.Option(False, "--mine", help="Only tasks assigned to me"),
    ):
        """Tasks by status, then highest priority, then due date."""

        async def _list(db, user):
            return await task_service(db).list_tasks(
                user,
                status=status,
                priority=priority,
                assigned_to_id=user.id if mine else None,
            )

        tasks = run(_list)
        table = Table(title="Tasks")
        table.add_column("ID", style="dim")
        table.add_column("Status")
        table.add_column("Priority")
        table.add_column("Due")
        table.add_column("Company")
        table.add_column("Assignee")
        table.add_column("Description")
        for t in tasks:
            table.add_row(
                str(t.id),
                t.status.value,
                t.priority.value,
                str(t.due_date or "-"),
                t.company.name if t.company else "-",
                t.assigned_to.email if t.assigned_to else "-",
                t.description,
            )
        console.print(table)

    @task_app.command("create")
    def create(
        description: str = typer.Option(..., "--description"),
        due: Optional[datetime] = typer.Option(None, "--due", formats=["%Y-%m-%d"]),
        priority: TaskPriority = typer.Option(TaskPriority.MEDIUM, "--priority"),
        company: Optional[str] = typer.Option(None, "--company", help="Company name"),
        assign_to: Optional[str] = typer.Option(None, "--assign-to", help="Assignee email"),
    ):
        """Create a task, optionally about a company and for a colleague."""

        async def _create(db, user):
            task_in = TaskCreateByName(
                description=description,
                due_date=due.date() if due else None,
                priority=priority,
                company_name=company,
                assign_to_email=assign_to,
            )
            return await task_service(db).create_task_by_name(user, task_in)

        task = run(_create)
        console.print(f"[green]Created task[/green] {task.id} ({task.priority.value})")

    @task_app.command("update-status")
    def update_status(
        task_id: str = typer.Option(..., "--id", help="Task id"),
        status: TaskStatus = typer.Option(..., "--status"),
    ):
        """Move a task to another status."""
        tid = parse_uuid(task_id, "id")

        async def _update(db, user):
            return await task_service(db).update_status(user, tid, status)

        task = run(_update)
        console.print(f"[green]Task[/green] {task.id} is now {task.status.value}")
