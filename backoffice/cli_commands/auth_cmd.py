import typer
from rich.panel import Panel

from backoffice.cli_commands._runtime import console, run, run_anonymous
from backoffice.core.security import (
    EmailAuthenticator,
    clear_cli_identity,
    save_cli_identity,
)
from backoffice.models.user import User
from backoffice.repositories.user_repo import UserRepository


def register(auth_app: typer.Typer) -> None:
    @auth_app.command("login")
    def login(email: str = typer.Argument(..., help="Email of an existing user")):
        """Remember which user the CLI acts as."""

        async def _verify(db):
            return await EmailAuthenticator(UserRepository(User, db)).authenticate(email)

        user = run_anonymous(_verify)
        path = save_cli_identity(user.email)
        console.print(f"Logged in as [b]{user.name}[/b] ({user.role.value}); saved to {path}")

    @auth_app.command("logout")
    def logout():
        """Forget the stored login."""
        if clear_cli_identity():
            console.print("Logged out")
        else:
            console.print("Not logged in")

    @auth_app.command("whoami")
    def whoami():
        """Show the user the CLI acts as."""

        async def _me(db, user):
            return user

        user = run(_me)
        console.print(
            Panel(
                f"[b]Name:[/b] {user.name}\n"
                f"[b]Email:[/b] {user.email}\n"
                f"[b]Role:[/b] {user.role.value}",
                title="Current user",
                expand=False,
            )
        )
