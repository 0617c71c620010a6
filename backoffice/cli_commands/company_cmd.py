from datetime import datetime
from typing import Optional

import typer
from rich.table import Table

from backoffice.cli_commands._runtime import console, portfolio_service, run
from backoffice.models.company import CompanyStage
from backoffice.schemas.company import CompanyCreate


def register(company_app: typer.Typer) -> None:
    @company_app.command("list")
    def list_companies(
        sector: Optional[str] = typer.Option(None, "--sector"),
        stage: Optional[CompanyStage] = typer.Option(None, "--stage"),
    ):
        """Portfolio companies."""

        async def _list(db, user):
            return await portfolio_service(db).list_companies(sector=sector, stage=stage)

        companies = run(_list)
        table = Table(title="Portfolio companies")
        table.add_column("ID", style="dim")
        table.add_column("Name")
        table.add_column("Sector")
        table.add_column("Stage")
        table.add_column("Founded")
        for c in companies:
            table.add_row(str(c.id), c.name, c.sector, c.stage.value, str(c.founded))
        console.print(table)

    @company_app.command("create")
    def create(
        name: str = typer.Option(..., "--name"),
        sector: str = typer.Option(..., "--sector"),
        stage: CompanyStage = typer.Option(..., "--stage"),
        founded: datetime = typer.Option(..., "--founded", formats=["%Y-%m-%d"]),
        description: Optional[str] = typer.Option(None, "--description"),
        website: Optional[str] = typer.Option(None, "--website"),
    ):
        """Add a portfolio company."""

        async def _create(db, user):
            company_in = CompanyCreate(
                name=name,
                description=description,
                sector=sector,
                stage=stage,
                founded=founded.date(),
                website=website,
            )
            return await portfolio_service(db).add_company(user, company_in)

        company = run(_create)
        console.print(f"[green]Added company[/green] {company.name} ({company.id})")
