"""
Command-line interface: ``backoffice <group> <command>``.

Commands call the same services as the HTTP API, acting as the user saved by
``backoffice auth login``.
"""

import typer

from backoffice.core.logging import setup_logging

app = typer.Typer(add_completion=False, help="VC back-office: funds, LPs, capital calls, NAV")
auth_app = typer.Typer(add_completion=False, help="Log in / out as an existing user")
app.add_typer(auth_app, name="auth")
db_app = typer.Typer(add_completion=False, help="Create tables and load sample data")
app.add_typer(db_app, name="db")
fund_app = typer.Typer(add_completion=False, help="Funds")
app.add_typer(fund_app, name="fund")
lp_app = typer.Typer(add_completion=False, help="Limited partners and their statements")
app.add_typer(lp_app, name="lp")
call_app = typer.Typer(add_completion=False, help="Capital calls and LP payments")
app.add_typer(call_app, name="capital-call")
nav_app = typer.Typer(add_completion=False, help="Net asset value calculations")
app.add_typer(nav_app, name="nav")
company_app = typer.Typer(add_completion=False, help="Portfolio companies")
app.add_typer(company_app, name="company")
investment_app = typer.Typer(add_completion=False, help="Fund investments in portfolio companies")
app.add_typer(investment_app, name="investment")
update_app = typer.Typer(add_completion=False, help="Company updates and metrics")
app.add_typer(update_app, name="update")
check_in_app = typer.Typer(add_completion=False, help="Check-ins with portfolio companies")
app.add_typer(check_in_app, name="check-in")
task_app = typer.Typer(add_completion=False, help="Follow-up tasks")
app.add_typer(task_app, name="task")

_COMMANDS_REGISTERED = False


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at INFO instead of WARNING"),
):
    setup_logging(level="INFO" if verbose else "WARNING", to_files=False)


def _register_commands() -> None:
    global _COMMANDS_REGISTERED
    if _COMMANDS_REGISTERED:
        return
    # Service and model imports stay out of `backoffice.cli` import time.
    from backoffice.cli_commands.auth_cmd import register as register_auth
    from backoffice.cli_commands.capital_call_cmd import register as register_capital_call
    from backoffice.cli_commands.check_in_cmd import register as register_check_in
    from backoffice.cli_commands.company_cmd import register as register_company
    from backoffice.cli_commands.db_cmd import register as register_db
    from backoffice.cli_commands.fund_cmd import register as register_fund
    from backoffice.cli_commands.investment_cmd import register as register_investment
    from backoffice.cli_commands.lp_cmd import register as register_lp
    from backoffice.cli_commands.nav_cmd import register as register_nav
    from backoffice.cli_commands.task_cmd import register as register_task
    from backoffice.cli_commands.update_cmd import register as register_update

    register_auth(auth_app)
    register_db(db_app)
    register_fund(fund_app)
    register_lp(lp_app)
    register_capital_call(call_app)
    register_nav(nav_app)
    register_company(company_app)
    register_investment(investment_app)
    register_update(update_app)
    register_check_in(check_in_app)
    register_task(task_app)
    _COMMANDS_REGISTERED = True


def main():
    _register_commands()
    app()


# Registered at import so the `backoffice = "backoffice.cli:app"` entry point sees every command.
_register_commands()


if __name__ == "__main__":
    main()
