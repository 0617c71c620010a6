import typer

from backoffice.cli_commands._runtime import console, run_anonymous
from backoffice.db.base import create_tables, drop_tables
from backoffice.db.session import engine
from backoffice.seed import seed_data


def register(db_app: typer.Typer) -> None:
    @db_app.command("init")
    def init(
        reset: bool = typer.Option(False, "--reset", help="Drop every table first (destroys data)"),
    ):
        """Create the database tables."""

        async def _init(db):
            if reset:
                await drop_tables(engine)
            await create_tables(engine)

        run_anonymous(_init)
        console.print("[green]Database tables ready[/green]")

    @db_app.command("seed")
    def seed():
        """Create tables and load the sample users, fund and portfolio."""

        async def _seed(db):
            await create_tables(engine)
            return await seed_data(db)

        if run_anonymous(_seed):
            console.print(
                "[green]Sample data loaded[/green]; try `backoffice auth login admin@example.com`"
            )
        else:
            console.print("Database already has users; nothing seeded")
