from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.table import Table

from backoffice.cli_commands._runtime import (
    console,
    fail,
    money,
    nav_service,
    parse_decimal,
    parse_uuid,
    resolve_fund,
    run,
)
from backoffice.models.nav import NAVCalculation, ValuationMethod
from backoffice.schemas.nav import HoldingInput


def _parse_holding(raw: str) -> HoldingInput:
    """``COMPANY_ID:VALUE[:METHOD]``"""
    parts = raw.split(":")
    if len(parts) not in (2, 3):
        raise typer.BadParameter(f"holding must be COMPANY_ID:VALUE[:METHOD], got '{raw}'")
    method = ValuationMethod.LAST_ROUND
    if len(parts) == 3:
        try:
            method = ValuationMethod(parts[2].strip().upper())
        except ValueError:
            choices = ", ".join(m.value for m in ValuationMethod)
            raise typer.BadParameter(f"method must be one of {choices}, got '{parts[2]}'")
    company_id = parse_uuid(parts[0], "company id")
    value = parse_decimal(parts[1], "holding value")
    try:
        return HoldingInput(company_id=company_id, value=value, method=method)
    except ValidationError as exc:
        raise typer.BadParameter(f"holding '{raw}': {exc.errors()[0]['msg']}")


def _print_calculation(calc: NAVCalculation) -> None:
    console.print(
        f"[b]NAV[/b] {calc.id} as of {calc.calculation_date}: "
        f"[b]{money(calc.total_value)} {calc.currency}[/b]"
    )
    if not calc.holdings:
        return
    table = Table()
    table.add_column("Company", style="dim")
    table.add_column("Value", justify="right")
    table.add_column("Method")
    for h in calc.holdings:
        table.add_row(str(h.company_id), money(h.value), h.method.value)
    console.print(table)


def register(nav_app: typer.Typer) -> None:
    @nav_app.command("calculate")
    def calculate(
        fund: str = typer.Option(..., "--fund", help="Fund id or name"),
        calculation_date: str = typer.Option(..., "--date", help="YYYY-MM-DD"),
        holding: List[str] = typer.Option(
            [], "--holding", help="COMPANY_ID:VALUE[:METHOD]; repeat per company"
        ),
        currency: Optional[str] = typer.Option(None, "--currency"),
    ):
        """Value the fund's holdings and store the NAV snapshot."""
        holdings = [_parse_holding(h) for h in holding]

        async def _calculate(db, user):
            target = await resolve_fund(db, user, fund)
            return await nav_service(db).calculate_nav(
                user, target.id, calculation_date, holdings, currency
            )

        _print_calculation(run(_calculate))

    @nav_app.command("history")
    def history(
        fund: str = typer.Option(..., "--fund", help="Fund id or name"),
        start: Optional[str] = typer.Option(None, "--start", help="YYYY-MM-DD"),
        end: Optional[str] = typer.Option(None, "--end", help="YYYY-MM-DD"),
    ):
        """NAV calculations within a date range, newest first."""

        async def _history(db, user):
            target = await resolve_fund(db, user, fund)
            return await nav_service(db).get_historical_nav(user, target.id, start, end)

        calculations = run(_history)
        table = Table(title="NAV history")
        table.add_column("ID", style="dim")
        table.add_column("Date")
        table.add_column("Total", justify="right")
        table.add_column("Currency")
        table.add_column("Holdings", justify="right")
        for calc in calculations:
            table.add_row(
                str(calc.id),
                str(calc.calculation_date),
                money(calc.total_value),
                calc.currency,
                str(len(calc.holdings)),
            )
        console.print(table)

    @nav_app.command("latest")
    def latest(fund: str = typer.Option(..., "--fund", help="Fund id or name")):
        """The most recent NAV calculation."""

        async def _latest(db, user):
            target = await resolve_fund(db, user, fund)
            return await nav_service(db).get_latest_nav(user, target.id)

        calc = run(_latest)
        if calc is None:
            fail(f"No NAV has been calculated for '{fund}'")
        _print_calculation(calc)
