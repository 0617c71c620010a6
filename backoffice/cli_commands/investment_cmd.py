from datetime import datetime

import typer

from backoffice.cli_commands._runtime import (
    console,
    money,
    parse_decimal,
    parse_uuid,
    portfolio_service,
    resolve_fund,
    run,
)
from backoffice.core.config import settings
from backoffice.models.investment import InvestmentType
from backoffice.schemas.investment import InvestmentCreate


def register(investment_app: typer.Typer) -> None:
    @investment_app.command("add")
    def add(
        fund: str = typer.Option(..., "--fund", help="Fund id or name"),
        company_id: str = typer.Option(..., "--company", help="Company id"),
        amount: str = typer.Option(..., "--amount"),
        investment_date: datetime = typer.Option(..., "--date", formats=["%Y-%m-%d"]),
        round_name: str = typer.Option(..., "--round", help="e.g. 'Series A'"),
        currency: str = typer.Option(settings.DEFAULT_CURRENCY, "--currency"),
        valuation: str = typer.Option("0", "--valuation", help="Post-money valuation"),
        ownership: str = typer.Option("0", "--ownership", help="Percentage acquired"),
        investment_type: InvestmentType = typer.Option(InvestmentType.PRIMARY, "--type"),
    ):
        """Record a fund's investment in a portfolio company."""
        company = parse_uuid(company_id, "company")
        invested = parse_decimal(amount, "amount")
        post_money = parse_decimal(valuation, "valuation")
        stake = parse_decimal(ownership, "ownership")

        async def _add(db, user):
            target = await resolve_fund(db, user, fund)
            invest_in = InvestmentCreate(
                fund_id=target.id,
                company_id=company,
                amount=invested,
                currency=currency,
                investment_date=investment_date.date(),
                round=round_name,
                valuation=post_money,
                ownership=stake,
                investment_type=investment_type,
            )
            return await portfolio_service(db).add_investment(user, invest_in)

        investment = run(_add)
        console.print(
            f"[green]Recorded investment[/green] {investment.id}: "
            f"{money(investment.amount)} {investment.currency} ({investment.round})"
        )
