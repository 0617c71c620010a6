from datetime import date, datetime
from typing import Optional

import typer
from rich.table import Table

from backoffice.cli_commands._runtime import (
    capital_call_service,
    console,
    money,
    parse_decimal,
    parse_uuid,
    resolve_fund,
    run,
)
from backoffice.models.capital_call import CapitalCallStatus
from backoffice.schemas.capital_call import CapitalCallCreate, CapitalCallDetail, PaymentCreate

_STATUS_STYLE = {
    CapitalCallStatus.FULLY_PAID: "green",
    CapitalCallStatus.PARTIALLY_PAID: "yellow",
    CapitalCallStatus.OVERDUE: "red",
    CapitalCallStatus.PENDING: "white",
}


def _parse_date(value: Optional[str], name: str) -> Optional[date]:
    if value is None:
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise typer.BadParameter(f"{name} must be YYYY-MM-DD, got '{value}'")


def _print_call(call: CapitalCallDetail) -> None:
    style = _STATUS_STYLE.get(call.status, "white")
    console.print(
        f"[b]Capital call[/b] {call.id}: {money(call.amount)} ({call.percentage:.4f}%) "
        f"called {call.call_date}, due {call.due_date}, "
        f"paid {money(call.total_paid)}, [{style}]{call.status.value}[/{style}]"
    )
    table = Table()
    table.add_column("LP")
    table.add_column("LP id", style="dim")
    table.add_column("Expected", justify="right")
    table.add_column("Paid", justify="right")
    table.add_column("Paid on")
    table.add_column("Status")
    for r in call.responses:
        table.add_row(
            r.lp_name or "-",
            str(r.lp_id),
            money(r.expected_amount),
            money(r.amount_paid),
            str(r.date_paid) if r.date_paid else "-",
            r.status.value,
        )
    console.print(table)


def register(call_app: typer.Typer) -> None:
    @call_app.command("list")
    def list_calls(
        fund: Optional[str] = typer.Option(None, "--fund", help="Fund id or name"),
        status: Optional[CapitalCallStatus] = typer.Option(None, "--status"),
    ):
        """Capital calls, newest first."""

        async def _list(db, user):
            fund_id = (await resolve_fund(db, user, fund)).id if fund else None
            return await capital_call_service(db).list_capital_calls(
                user, fund_id=fund_id, status=status, limit=1000
            )

        calls = run(_list)
        table = Table(title="Capital calls")
        table.add_column("ID", style="dim")
        table.add_column("Call date")
        table.add_column("Due")
        table.add_column("Amount", justify="right")
        table.add_column("%", justify="right")
        table.add_column("Paid", justify="right")
        table.add_column("Status")
        for call in calls:
            style = _STATUS_STYLE.get(call.status, "white")
            table.add_row(
                str(call.id),
                str(call.call_date),
                str(call.due_date),
                money(call.amount),
                f"{call.percentage:.4f}",
                money(call.total_paid),
                f"[{style}]{call.status.value}[/{style}]",
            )
        console.print(table)

    @call_app.command("create")
    def create(
        fund: str = typer.Option(..., "--fund", help="Fund id or name"),
        amount: str = typer.Option(..., "--amount"),
        due_date: str = typer.Option(..., "--due-date", help="YYYY-MM-DD"),
        call_date: Optional[str] = typer.Option(
            None, "--call-date", help="YYYY-MM-DD, default today"
        ),
        percentage: Optional[str] = typer.Option(
            None, "--percentage", help="Checked against the amount when given"
        ),
        description: Optional[str] = typer.Option(None, "--description"),
    ):
        """Issue a capital call to every LP in the fund."""
        call_amount = parse_decimal(amount, "amount")
        pct = parse_decimal(percentage, "percentage") if percentage is not None else None
        due = _parse_date(due_date, "due-date")
        called = _parse_date(call_date, "call-date")

        async def _create(db, user):
            call_in = CapitalCallCreate(
                amount=call_amount,
                due_date=due,
                call_date=called,
                percentage=pct,
                description=description,
            )
            target = await resolve_fund(db, user, fund)
            return await capital_call_service(db).create_capital_call(user, target.id, call_in)

        _print_call(run(_create))

    @call_app.command("record-payment")
    def record_payment(
        call_id: str = typer.Argument(..., help="Capital call id"),
        lp_id: str = typer.Option(..., "--lp", help="LP id"),
        amount_paid: str = typer.Option(..., "--amount"),
        date_paid: Optional[str] = typer.Option(None, "--date", help="YYYY-MM-DD, default today"),
        notes: Optional[str] = typer.Option(None, "--notes"),
    ):
        """Set how much an LP has paid against a call."""
        cid = parse_uuid(call_id, "call-id")
        lid = parse_uuid(lp_id, "lp")
        paid = parse_decimal(amount_paid, "amount")
        paid_on = _parse_date(date_paid, "date") or date.today()

        async def _pay(db, user):
            payment = PaymentCreate(lp_id=lid, amount_paid=paid, date_paid=paid_on, notes=notes)
            return await capital_call_service(db).record_payment(user, cid, payment)

        _print_call(run(_pay))

    @call_app.command("recompute")
    def recompute(call_id: str = typer.Argument(..., help="Capital call id")):
        """Re-derive one call's status from its payments."""
        cid = parse_uuid(call_id, "call-id")

        async def _recompute(db, user):
            return await capital_call_service(db).recompute_call_status(user, cid)

        _print_call(run(_recompute))

    @call_app.command("refresh")
    def refresh(
        fund: Optional[str] = typer.Option(
            None, "--fund", help="Fund id or name; every fund when omitted (SUPER_ADMIN)"
        ),
    ):
        """Persist derived statuses, e.g. mark calls past due as OVERDUE."""

        async def _refresh(db, user):
            fund_id = (await resolve_fund(db, user, fund)).id if fund else None
            return await capital_call_service(db).refresh_call_statuses(user, fund_id)

        result = run(_refresh)
        console.print(f"Checked {result.checked} capital calls, {result.changed} changed")
