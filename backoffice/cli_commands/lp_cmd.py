from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from backoffice.cli_commands._runtime import (
    as_uuid,
    capital_call_service,
    console,
    lp_service,
    money,
    parse_decimal,
    resolve_fund,
    run,
)
from backoffice.models.limited_partner import LPType
from backoffice.schemas.limited_partner import LimitedPartnerCreate


def register(lp_app: typer.Typer) -> None:
    @lp_app.command("list")
    def list_lps(
        fund: Optional[str] = typer.Option(None, "--fund", help="Fund id or name"),
        lp_type: Optional[LPType] = typer.Option(None, "--type"),
    ):
        """Limited partners, for one fund or (read-all roles) every fund."""

        async def _list(db, user):
            fund_id = (await resolve_fund(db, user, fund)).id if fund else None
            return await lp_service(db).list_lps(user, fund_id=fund_id, lp_type=lp_type, limit=1000)

        lps = run(_list)
        table = Table(title="Limited partners")
        table.add_column("ID", style="dim")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Email")
        table.add_column("Commitment", justify="right")
        for lp in lps:
            table.add_row(
                str(lp.id),
                lp.name,
                lp.lp_type.value if lp.lp_type else "-",
                lp.email or "-",
                money(lp.commitment),
            )
        console.print(table)

    @lp_app.command("create")
    def create(
        fund: str = typer.Option(..., "--fund", help="Fund id or name"),
        name: str = typer.Option(..., "--name"),
        commitment: str = typer.Option(..., "--commitment"),
        lp_type: LPType = typer.Option(LPType.INSTITUTION, "--type"),
        email: Optional[str] = typer.Option(None, "--email"),
        phone: Optional[str] = typer.Option(None, "--phone"),
    ):
        """Admit a limited partner to a fund."""
        amount = parse_decimal(commitment, "commitment")

        async def _create(db, user):
            lp_in = LimitedPartnerCreate(
                name=name, email=email, phone=phone, lp_type=lp_type, commitment=amount
            )
            target = await resolve_fund(db, user, fund)
            return await lp_service(db).create_lp(user, target.id, lp_in)

        lp = run(_create)
        console.print(
            f"[green]Added LP[/green] {lp.name} ({lp.id}) with commitment {money(lp.commitment)}"
        )

    @lp_app.command("statement")
    def statement(
        lp: str = typer.Argument(..., help="LP id or name"),
        fund: str = typer.Option(..., "--fund", help="Fund id or name"),
    ):
        """Capital-account statement for one LP in one fund."""

        async def _statement(db, user):
            target = await resolve_fund(db, user, fund)
            service = capital_call_service(db)
            lp_id = as_uuid(lp)
            if lp_id is not None:
                return await service.generate_lp_statement(user, lp_id, target.id)
            return await service.generate_lp_statement_by_name(user, lp, target.name)

        s = run(_statement)
        ccy = s.currency
        console.print(
            Panel(
                f"[b]Fund:[/b] {s.fund_name}\n"
                f"[b]Commitment:[/b] {money(s.commitment)} {ccy}\n"
                f"[b]Total called:[/b] {money(s.total_called)} {ccy}\n"
                f"[b]Total paid:[/b] {money(s.total_paid)} {ccy}\n"
                f"[b]Outstanding:[/b] {money(s.outstanding_balance)} {ccy}\n"
                f"[b]Remaining commitment:[/b] {money(s.remaining_commitment)} {ccy}",
                title=f"Statement: {s.lp_name}",
                expand=False,
            )
        )
        table = Table(title="Call history")
        table.add_column("Call date")
        table.add_column("Due")
        table.add_column("%", justify="right")
        table.add_column("Expected", justify="right")
        table.add_column("Paid", justify="right")
        table.add_column("Paid on")
        table.add_column("Payment")
        table.add_column("Call status")
        for line in s.call_history:
            table.add_row(
                str(line.call_date),
                str(line.due_date),
                f"{line.percentage:.4f}",
                money(line.expected_amount),
                money(line.amount_paid),
                str(line.date_paid) if line.date_paid else "-",
                line.payment_status.value,
                line.call_status.value,
            )
        console.print(table)
