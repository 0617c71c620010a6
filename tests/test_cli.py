"""
CLI tests: commands run through ``typer.testing.CliRunner`` against a
file-backed SQLite database in ``tmp_path``.

The engine / session factory the commands use and the directory holding the
CLI login are monkeypatched per test, so nothing touches ``~/.backoffice``.
"""

import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from typer.testing import CliRunner

from backoffice.cli import app
from backoffice.models.capital_call import CapitalCall
from backoffice.models.limited_partner import LimitedPartner
from backoffice.models.task import Task, TaskStatus

runner = CliRunner()

SEED_FUND = "Example Ventures Fund I"


@pytest.fixture()
def cli_db(tmp_path, monkeypatch):
    """Point the CLI at a private database and config directory."""
    from backoffice.cli_commands import _runtime, db_cmd
    from backoffice.core.config import settings
    from backoffice.db.session import build_engine, build_sessionmaker

    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}", echo=False)
    session_factory = build_sessionmaker(engine)
    monkeypatch.setattr(_runtime, "engine", engine)
    monkeypatch.setattr(_runtime, "AsyncSessionLocal", session_factory)
    monkeypatch.setattr(db_cmd, "engine", engine)
    monkeypatch.setattr(settings, "CLI_CONFIG_DIR", str(tmp_path / "config"))
    # Wide enough that UUID columns are never wrapped.
    monkeypatch.setattr(_runtime.console, "width", 200)
    return engine


@pytest.fixture()
def seeded(cli_db):
    result = runner.invoke(app, ["db", "seed"])
    assert result.exit_code == 0, result.output
    return cli_db


def _login(email: str) -> None:
    result = runner.invoke(app, ["auth", "login", email])
    assert result.exit_code == 0, result.output


def _fetch(engine, statement):
    async def _query():
        try:
            async with AsyncSession(engine) as session:
                return (await session.execute(statement)).scalars().first()
        finally:
            await engine.dispose()

    return asyncio.run(_query())


# ────────────────────────────────────────────────────────────────────────────
# Structure
# ────────────────────────────────────────────────────────────────────────────


class TestCLIStructure:
    def test_main_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for group in ("fund", "lp", "capital-call", "nav", "company", "update", "check-in", "task"):
            assert group in result.output

    @pytest.mark.parametrize(
        "group",
        [
            "auth",
            "db",
            "fund",
            "lp",
            "capital-call",
            "nav",
            "company",
            "investment",
            "update",
            "check-in",
            "task",
        ],
    )
    def test_group_help(self, group):
        result = runner.invoke(app, [group, "--help"])
        assert result.exit_code == 0


# ────────────────────────────────────────────────────────────────────────────
# Auth
# ────────────────────────────────────────────────────────────────────────────


class TestAuth:
    def test_commands_require_login(self, seeded):
        result = runner.invoke(app, ["fund", "list"])
        assert result.exit_code == 1
        assert "Not logged in" in result.output

    def test_unknown_user_cannot_log_in(self, seeded):
        result = runner.invoke(app, ["auth", "login", "nobody@example.com"])
        assert result.exit_code == 1
        assert "Unknown user" in result.output

    def test_login_whoami_logout(self, seeded):
        _login("Admin@Example.com")

        result = runner.invoke(app, ["auth", "whoami"])
        assert result.exit_code == 0
        assert "admin@example.com" in result.output
        assert "SUPER_ADMIN" in result.output

        assert runner.invoke(app, ["auth", "logout"]).exit_code == 0
        assert runner.invoke(app, ["auth", "whoami"]).exit_code == 1

    def test_seed_is_idempotent(self, seeded):
        result = runner.invoke(app, ["db", "seed"])
        assert result.exit_code == 0
        assert "nothing seeded" in result.output


# ────────────────────────────────────────────────────────────────────────────
# Funds and permissions
# ────────────────────────────────────────────────────────────────────────────


class TestFundCommands:
    def test_list_shows_seeded_fund(self, seeded):
        _login("analyst@example.com")

        result = runner.invoke(app, ["fund", "list"])

        assert result.exit_code == 0
        assert SEED_FUND in result.output

    def test_user_role_sees_no_foreign_funds(self, seeded):
        _login("user@example.com")

        result = runner.invoke(app, ["fund", "list"])

        assert result.exit_code == 0
        assert SEED_FUND not in result.output

    def test_manager_creates_fund(self, seeded):
        _login("manager@example.com")

        result = runner.invoke(
            app,
            ["fund", "create", "--name", "Growth Fund II", "--vintage-year", "2025",
             "--target-size", "$75,000,000"],
        )

        assert result.exit_code == 0, result.output
        assert "Created fund" in result.output
        assert "Growth Fund II" in result.output

    def test_analyst_cannot_create_fund(self, seeded):
        _login("analyst@example.com")

        result = runner.invoke(
            app,
            ["fund", "create", "--name", "Nope", "--vintage-year", "2025",
             "--target-size", "1000"],
        )

        assert result.exit_code == 1
        assert "permission" in result.output

    def test_bad_number_is_a_usage_error(self, seeded):
        _login("admin@example.com")

        result = runner.invoke(
            app,
            ["fund", "create", "--name", "Bad", "--vintage-year", "2025",
             "--target-size", "lots"],
        )

        assert result.exit_code == 2

    def test_summary_by_name(self, seeded):
        _login("admin@example.com")

        result = runner.invoke(app, ["fund", "get", SEED_FUND])

        assert result.exit_code == 0
        assert "11,000,000.00 USD" in result.output
        assert "750,000.00 USD" in result.output


# ────────────────────────────────────────────────────────────────────────────
# Capital calls and statements
# ────────────────────────────────────────────────────────────────────────────


class TestCapitalCallCommands:
    def test_statement_for_seeded_lp(self, seeded):
        _login("manager@example.com")

        result = runner.invoke(
            app, ["lp", "statement", "Harbor Pension Plan", "--fund", SEED_FUND]
        )

        assert result.exit_code == 0, result.output
        assert "Total called: 1,000,000.00 USD" in result.output
        assert "Outstanding: 500,000.00 USD" in result.output
        assert "Remaining commitment: 9,000,000.00 USD" in result.output

    def test_payments_settle_the_call(self, seeded):
        _login("admin@example.com")
        call = _fetch(seeded, select(CapitalCall))
        harbor = _fetch(
            seeded, select(LimitedPartner).where(LimitedPartner.name == "Harbor Pension Plan")
        )
        jordan = _fetch(
            seeded, select(LimitedPartner).where(LimitedPartner.name == "Jordan Family Office")
        )

        result = runner.invoke(
            app,
            ["capital-call", "record-payment", str(call.id), "--lp", str(harbor.id),
             "--amount", "1000000", "--date", "2024-03-28"],
        )
        assert result.exit_code == 0, result.output
        assert "PARTIALLY_PAID" in result.output

        result = runner.invoke(
            app,
            ["capital-call", "record-payment", str(call.id), "--lp", str(jordan.id),
             "--amount", "100000", "--date", "2024-03-29"],
        )
        assert result.exit_code == 0, result.output
        assert "FULLY_PAID" in result.output

    def test_ambiguous_call_is_rejected(self, seeded):
        _login("admin@example.com")

        result = runner.invoke(
            app,
            ["capital-call", "create", "--fund", SEED_FUND, "--amount", "500000",
             "--percentage", "10", "--call-date", "2024-06-01", "--due-date", "2024-06-30"],
        )

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_bad_date_is_a_usage_error(self, seeded):
        _login("admin@example.com")

        result = runner.invoke(
            app,
            ["capital-call", "create", "--fund", SEED_FUND, "--amount", "1000",
             "--due-date", "30/06/2024"],
        )

        assert result.exit_code == 2

    def test_refresh_across_funds_needs_super_admin(self, seeded):
        _login("manager@example.com")

        result = runner.invoke(app, ["capital-call", "refresh"])

        assert result.exit_code == 1
        assert "permission" in result.output


# ────────────────────────────────────────────────────────────────────────────
# Check-ins and tasks
# ────────────────────────────────────────────────────────────────────────────


class TestCheckInCommands:
    def test_history_for_seeded_company(self, seeded):
        _login("analyst@example.com")

        result = runner.invoke(app, ["check-in", "history", "--company", "Acme Robotics"])

        assert result.exit_code == 0, result.output
        assert "2024-07-08" in result.output
        assert "200,000.00" in result.output

    def test_create_then_list_since(self, seeded):
        _login("analyst@example.com")

        result = runner.invoke(
            app,
            [
                "check-in",
                "create",
                "--company",
                "Acme Robotics",
                "--date",
                "2024-08-01",
                "--revenue",
                "$210,000",
                "--runway",
                "17",
                "--metrics",
                '{"NPS": 61}',
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Recorded check-in" in result.output

        result = runner.invoke(app, ["check-in", "list", "--since", "2024-08-01"])
        assert result.exit_code == 0, result.output
        assert "2024-08-01" in result.output
        assert "210,000.00" in result.output
        assert "2024-07-08" not in result.output

    def test_metrics_must_be_a_json_object(self, seeded):
        _login("analyst@example.com")

        result = runner.invoke(
            app, ["check-in", "create", "--company", "Acme Robotics", "--metrics", "[1, 2]"]
        )

        assert result.exit_code == 2

    def test_unknown_company(self, seeded):
        _login("analyst@example.com")

        result = runner.invoke(app, ["check-in", "history", "--company", "Nobody Inc"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_last_contact(self, seeded):
        _login("analyst@example.com")

        result = runner.invoke(app, ["check-in", "last-contact", "Acme Robotics"])

        assert result.exit_code == 0, result.output
        assert "Last contact: 2024-07-08" in result.output
        assert "Series A" in result.output
        assert "Review Q2 board pack" in result.output


class TestTaskCommands:
    def test_assignee_sees_and_closes_seeded_task(self, seeded):
        _login("analyst@example.com")

        result = runner.invoke(app, ["task", "list", "--mine"])
        assert result.exit_code == 0, result.output
        assert "Review Q2 board pack" in result.output

        task = _fetch(seeded, select(Task))
        result = runner.invoke(
            app, ["task", "update-status", "--id", str(task.id), "--status", "DONE"]
        )
        assert result.exit_code == 0, result.output
        assert _fetch(seeded, select(Task)).status == TaskStatus.DONE

    def test_create_by_company_and_email(self, seeded):
        _login("manager@example.com")

        result = runner.invoke(
            app,
            [
                "task",
                "create",
                "--description",
                "Schedule Q3 board meeting",
                "--due",
                "2024-09-01",
                "--priority",
                "URGENT",
                "--company",
                "Acme Robotics",
                "--assign-to",
                "analyst@example.com",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Created task" in result.output

        result = runner.invoke(app, ["task", "list", "--priority", "URGENT"])
        assert "Schedule Q3 board meeting" in result.output
        assert "Review Q2 board pack" not in result.output

    def test_read_only_cannot_create(self, seeded):
        _login("readonly@example.com")

        result = runner.invoke(app, ["task", "create", "--description", "Anything"])

        assert result.exit_code == 1
        assert "permission" in result.output

    def test_other_user_cannot_close_task(self, seeded):
        _login("user@example.com")
        task = _fetch(seeded, select(Task))

        result = runner.invoke(
            app, ["task", "update-status", "--id", str(task.id), "--status", "CANCELED"]
        )

        assert result.exit_code == 1
        assert "permission" in result.output
