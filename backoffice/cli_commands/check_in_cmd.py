import json
from datetime import datetime
from typing import Optional

import typer
from rich.table import Table

from backoffice.cli_commands._runtime import (
    as_uuid,
    check_in_service,
    console,
    money,
    parse_decimal,
    run,
)
from backoffice.schemas.check_in import CheckInCreate


async def _resolve_company(service, ref: str):
    """A company by id, or by exact name when ``ref`` is not a UUID."""
    company_id = as_uuid(ref)
    if company_id is not None:
        return await service.get_company(company_id)
    return await service.get_company_by_name(ref)


def _parse_metrics(raw: Optional[str]) -> Optional[dict]:
    if raw is None:
        return None
    try:
        metrics = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"metrics must be a JSON object: {exc.msg}")
    if not isinstance(metrics, dict):
        raise typer.BadParameter("metrics must be a JSON object")
    return metrics


def _check_in_table(title: str, check_ins, show_company: bool) -> Table:
    table = Table(title=title)
    table.add_column("Date")
    if show_company:
        table.add_column("Company")
    table.add_column("Revenue", justify="right")
    table.add_column("Burn", justify="right")
    table.add_column("Runway", justify="right")
    table.add_column("Headcount", justify="right")
    table.add_column("Notes")
    for c in check_ins:
        row = [str(c.check_in_date)]
        if show_company:
            row.append(c.company.name if c.company else str(c.company_id))
        row += [
            money(c.revenue),
            money(c.burn),
            "-" if c.runway is None else f"{c.runway} mo",
            "-" if c.headcount is None else str(c.headcount),
            c.notes or "",
        ]
        table.add_row(*row)
    return table


def register(check_in_app: typer.Typer) -> None:
    @check_in_app.command("list")
    def list_check_ins(
        company: Optional[str] = typer.Option(None, "--company", help="Company id or name"),
        since: Optional[str] = typer.Option(None, "--since", help="YYYY-MM-DD"),
        limit: int = typer.Option(10, "--limit", min=1),
    ):
        """Recent check-ins, newest first."""

        async def _list(db, user):
            service = check_in_service(db)
            company_id = None
            if company is not None:
                company_id = (await _resolve_company(service, company)).id
            return await service.list_check_ins(company_id=company_id, since=since, limit=limit)

        check_ins = run(_list)
        console.print(_check_in_table("Check-ins", check_ins, show_company=True))

    @check_in_app.command("create")
    def create(
        company: str = typer.Option(..., "--company", help="Company id or name"),
        check_in_date: Optional[datetime] = typer.Option(
            None, "--date", formats=["%Y-%m-%d"], help="Defaults to today"
        ),
        revenue: Optional[str] = typer.Option(None, "--revenue", help="Monthly revenue"),
        burn: Optional[str] = typer.Option(None, "--burn", help="Monthly burn"),
        runway: Optional[int] = typer.Option(None, "--runway", help="Months"),
        headcount: Optional[int] = typer.Option(None, "--headcount"),
        notes: Optional[str] = typer.Option(None, "--notes"),
        metrics: Optional[str] = typer.Option(None, "--metrics", help="JSON object"),
    ):
        """Record a check-in with a company."""
        custom = _parse_metrics(metrics)
        revenue_amount = parse_decimal(revenue, "revenue") if revenue is not None else None
        burn_amount = parse_decimal(burn, "burn") if burn is not None else None

        async def _create(db, user):
            service = check_in_service(db)
            target = await _resolve_company(service, company)
            check_in_in = CheckInCreate(
                check_in_date=check_in_date.date() if check_in_date else None,
                revenue=revenue_amount,
                burn=burn_amount,
                runway=runway,
                headcount=headcount,
                notes=notes,
                metrics=custom,
            )
            return target, await service.create_check_in(user, target.id, check_in_in)

        target, check_in = run(_create)
        console.print(
            f"[green]Recorded check-in[/green] {check_in.id} with {target.name} "
            f"on {check_in.check_in_date}"
        )

    @check_in_app.command("history")
    def history(
        company: str = typer.Option(..., "--company", help="Company id or name"),
        limit: int = typer.Option(5, "--limit", min=1),
    ):
        """One company's check-ins, newest first."""

        async def _history(db, user):
            service = check_in_service(db)
            target = await _resolve_company(service, company)
            return target, await service.list_check_ins(company_id=target.id, limit=limit)

        target, check_ins = run(_history)
        console.print(
            _check_in_table(f"Check-ins with {target.name}", check_ins, show_company=False)
        )

    @check_in_app.command("last-contact")
    def last_contact(company: str = typer.Argument(..., help="Company id or name")):
        """Last check-in, open tasks and latest investment for a company."""

        async def _contact(db, user):
            service = check_in_service(db)
            return await service.get_last_contact(user, await _resolve_company(service, company))

        contact = run(_contact)
        console.print(f"[bold]{contact.name}[/bold] ({contact.sector})")
        if contact.last_contact is None:
            console.print("No check-ins recorded")
        else:
            console.print(
                f"Last contact: {contact.last_contact.check_in_date} "
                f"({contact.last_contact.days_since} days ago)"
            )
        if contact.latest_investment is not None:
            inv = contact.latest_investment
            console.print(
                f"Latest investment: {money(inv.amount)} {inv.currency} {inv.round} "
                f"from {inv.fund.name} on {inv.investment_date}"
            )
        for task in contact.upcoming_tasks:
            console.print(
                f"  {task.priority.value}: {task.description} (due {task.due_date or '-'})"
            )
