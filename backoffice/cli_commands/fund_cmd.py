from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from backoffice.cli_commands._runtime import (
    console,
    fund_service,
    money,
    parse_decimal,
    parse_uuid,
    resolve_fund,
    run,
)
from backoffice.models.fund import FundStatus
from backoffice.schemas.fund import FundCreate


def register(fund_app: typer.Typer) -> None:
    @fund_app.command("list")
    def list_funds(limit: int = typer.Option(100, "--limit", min=1, max=1000)):
        """Funds visible to the current user."""

        async def _list(db, user):
            return await fund_service(db).get_all_funds(user, skip=0, limit=limit)

        funds = run(_list)
        table = Table(title="Funds")
        table.add_column("ID", style="dim")
        table.add_column("Name")
        table.add_column("Vintage", justify="right")
        table.add_column("Target", justify="right")
        table.add_column("Status")
        for fund in funds:
            table.add_row(
                str(fund.id),
                fund.name,
                str(fund.vintage_year),
                f"{money(fund.target_size)} {fund.currency}",
                fund.status.value,
            )
        console.print(table)

    @fund_app.command("create")
    def create(
        name: str = typer.Option(..., "--name"),
        vintage_year: int = typer.Option(..., "--vintage-year"),
        target_size: str = typer.Option(..., "--target-size", help="e.g. 50000000"),
        currency: str = typer.Option("USD", "--currency"),
        status: FundStatus = typer.Option(FundStatus.RAISING, "--status"),
        description: Optional[str] = typer.Option(None, "--description"),
        owner: Optional[str] = typer.Option(None, "--owner-id", help="SUPER_ADMIN only"),
    ):
        """Create a fund owned by the current user (or --owner-id)."""
        target = parse_decimal(target_size, "target-size")
        owner_id = parse_uuid(owner, "owner-id") if owner else None

        async def _create(db, user):
            fund_in = FundCreate(
                name=name,
                description=description,
                vintage_year=vintage_year,
                target_size=target,
                currency=currency,
                status=status,
                owner_id=owner_id,
            )
            return await fund_service(db).create_fund(user, fund_in)

        fund = run(_create)
        console.print(f"[green]Created fund[/green] {fund.name} ({fund.id})")

    @fund_app.command("get")
    def get(fund: str = typer.Argument(..., help="Fund id or exact name")):
        """Fund details with commitment and investment totals."""

        async def _get(db, user):
            found = await resolve_fund(db, user, fund)
            return await fund_service(db).get_summary(user, found.id)

        summary = run(_get)
        f = summary.fund
        invested = ", ".join(f"{money(v)} {k}" for k, v in summary.total_invested.items()) or "-"
        console.print(
            Panel(
                f"[b]ID:[/b] {f.id}\n"
                f"[b]Owner:[/b] {f.owner_id}\n"
                f"[b]Vintage:[/b] {f.vintage_year}\n"
                f"[b]Status:[/b] {f.status.value}\n"
                f"[b]Target size:[/b] {money(f.target_size)} {f.currency}\n"
                f"[b]Total commitments:[/b] {money(summary.total_commitments)} {f.currency}\n"
                f"[b]Total invested:[/b] {invested}\n"
                f"[b]LPs:[/b] {summary.lp_count}\n"
                f"[b]Capital calls:[/b] {summary.capital_call_count}",
                title=f.name,
                expand=False,
            )
        )
