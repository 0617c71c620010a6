from datetime import datetime
from decimal import Decimal
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.table import Table

from backoffice.cli_commands._runtime import console, parse_uuid, run, update_service
from backoffice.models.update import UpdateType
from backoffice.schemas.update import MetricInput, UpdateCreate


def _parse_metric(raw: str) -> MetricInput:
    """``NAME=VALUE``; numeric values are stored as numbers, anything else as text."""
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        raise typer.BadParameter(f"metric must be NAME=VALUE, got '{raw}'")
    try:
        return MetricInput(name=name, value=value.strip())
    except ValidationError as exc:
        raise typer.BadParameter(f"metric '{raw}': {exc.errors()[0]['msg']}")


def _fmt(value) -> str:
    if isinstance(value, Decimal):
        return f"{value.normalize():,f}"
    return "-" if value is None else str(value)


def register(update_app: typer.Typer) -> None:
    @update_app.command("create")
    def create(
        company_id: str = typer.Argument(..., help="Company id"),
        update_date: datetime = typer.Option(..., "--date", formats=["%Y-%m-%d"]),
        update_type: UpdateType = typer.Option(UpdateType.ADHOC, "--type"),
        notes: Optional[str] = typer.Option(None, "--notes"),
        metric: List[str] = typer.Option([], "--metric", help="NAME=VALUE; repeatable"),
    ):
        """Record a company update with its metrics."""
        cid = parse_uuid(company_id, "company-id")
        metrics = [_parse_metric(m) for m in metric]

        async def _create(db, user):
            update_in = UpdateCreate(
                update_date=update_date.date(),
                update_type=update_type,
                notes=notes,
                metrics=metrics,
            )
            return await update_service(db).create_update(user, cid, update_in)

        update = run(_create)
        console.print(
            f"[green]Recorded update[/green] {update.id} ({update.update_type.value}, "
            f"{update.update_date}) with {len(update.metrics)} metrics"
        )

    @update_app.command("latest")
    def latest(company_id: str = typer.Argument(..., help="Company id")):
        """Latest reported value of every metric."""
        cid = parse_uuid(company_id, "company-id")

        async def _latest(db, user):
            return await update_service(db).get_latest_metrics(cid)

        rows = run(_latest)
        table = Table(title="Latest metrics")
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        table.add_column("As of")
        for row in rows:
            table.add_row(row.name, _fmt(row.value), str(row.metric_date))
        console.print(table)

    @update_app.command("history")
    def history(
        company_id: str = typer.Argument(..., help="Company id"),
        metric_name: str = typer.Argument(..., help="Metric name, e.g. ARR"),
        start: Optional[str] = typer.Option(None, "--start", help="YYYY-MM-DD"),
        end: Optional[str] = typer.Option(None, "--end", help="YYYY-MM-DD"),
    ):
        """Values of one metric over time, oldest first."""
        cid = parse_uuid(company_id, "company-id")

        async def _history(db, user):
            return await update_service(db).get_metric_history(cid, metric_name, start, end)

        metrics = run(_history)
        table = Table(title=f"{metric_name} history")
        table.add_column("Date")
        table.add_column("Value", justify="right")
        for m in metrics:
            table.add_row(str(m.metric_date), _fmt(m.value))
        console.print(table)
