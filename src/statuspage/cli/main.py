"""Statuspage CLI - server and administration commands."""

import asyncio
import logging
import uuid
from datetime import datetime, timezone

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from statuspage.api.auth.config import JWTConfig
from statuspage.api.auth.models import UserRole
from statuspage.api.auth.password import (
    MAX_PASSWORD_BYTES,
    PasswordService,
    PasswordTooLongError,
)
from statuspage.api.auth.service import AuthService, UserNotFoundError
from statuspage.api.auth.token import TokenService
from statuspage.config import get_app_settings
from statuspage.core.errors import StatusPageError
from statuspage.db.database import close_db, create_tables, get_async_session, init_db
from statuspage.db.repositories import IdentityRepository, SubscriberRepository
from statuspage.logging_config import setup_logging
from statuspage.notifications.models import ChannelType, NotificationChannel

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="statuspage",
    help="Statuspage - incident and maintenance status page backend",
    add_completion=False,
)

console = Console()


@app.callback()
def callback(
    log_level: str = typer.Option("warning", "--log-level", help="Log level for CLI output"),
) -> None:
    """Configure logging for every command."""
    setup_logging(log_level, "text")


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind to (default: SERVER_HOST)"),
    port: int = typer.Option(None, help="Port to bind to (default: SERVER_PORT)"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_app_settings()
    host = host or settings.SERVER_HOST
    port = port or settings.SERVER_PORT

    console.print(
        Panel.fit(
            f"[bold green]Starting Statuspage API Server[/bold green]\n"
            f"Host: {host}\n"
            f"Port: {port}\n"
            f"Reload: {reload}",
            title="Statuspage Server",
        )
    )

    uvicorn.run(
        "statuspage.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command("init-db")
def init_db_command() -> None:
    """Create all database tables that do not exist yet."""

    async def _run() -> None:
        await init_db()
        try:
            await create_tables()
        finally:
            await close_db()

    asyncio.run(_run())
    console.print("[green]Database tables created[/green]")


@app.command("hash-password")
def hash_password(
    password: str = typer.Option(
        ..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password to hash"
    ),
    rounds: int = typer.Option(None, help="bcrypt cost factor (default: BCRYPT_ROUNDS)"),
) -> None:
    """Print the bcrypt hash of a password, for seeding users by hand."""
    service = PasswordService(rounds=rounds or JWTConfig().bcrypt_rounds)
    try:
        typer.echo(service.hash_password(password))
    except PasswordTooLongError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)


@app.command("create-user")
def create_user(
    email: str = typer.Option(..., "--email", "-e", help="Email address"),
    password: str = typer.Option(
        ..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password"
    ),
    role: UserRole = typer.Option(UserRole.USER, "--role", "-r", help="Role to grant"),
    first_name: str = typer.Option("", help="First name"),
    last_name: str = typer.Option("", help="Last name"),
) -> None:
    """Create a user with any role.

    This is the only way to create operators and admins; self-registration
    always yields the ``user`` role.
    """
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        console.print(f"[red]Error: {PasswordTooLongError().message}[/red]")
        raise typer.Exit(1)

    async def _run():
        await init_db()
        try:
            async with get_async_session() as session:
                repo = IdentityRepository(session)
                service = AuthService(
                    users=repo, tokens=repo, token_service=TokenService(JWTConfig())
                )
                return await service.register(
                    email=email,
                    password=password,
                    first_name=first_name,
                    last_name=last_name,
                    role=role,
                )
        finally:
            await close_db()

    try:
        user = asyncio.run(_run())
    except StatusPageError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)

    table = Table(title="User created")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("ID", user.id)
    table.add_row("Email", user.email)
    table.add_row("Role", user.role.value)
    console.print(table)


@app.command("set-role")
def set_role(
    email: str = typer.Option(..., "--email", "-e", help="Email address of the user"),
    role: UserRole = typer.Option(..., "--role", "-r", help="New role"),
) -> None:
    """Change the role of an existing user.

    Tokens already issued keep the old role until they expire.
    """

    async def _run():
        await init_db()
        try:
            async with get_async_session() as session:
                repo = IdentityRepository(session)
                user = await repo.get_user_by_email(email.strip().lower())
                if user is None:
                    raise UserNotFoundError()
                user.role = role
                return await repo.update_user(user)
        finally:
            await close_db()

    try:
        user = asyncio.run(_run())
    except StatusPageError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]{user.email} is now {user.role.value}[/green]")


@app.command("revoke-sessions")
def revoke_sessions(
    email: str = typer.Option(..., "--email", "-e", help="Email address of the user"),
) -> None:
    """Revoke every refresh token of a user, signing them out everywhere."""

    async def _run() -> int:
        await init_db()
        try:
            async with get_async_session() as session:
                repo = IdentityRepository(session)
                user = await repo.get_user_by_email(email.strip().lower())
                if user is None:
                    raise UserNotFoundError()
                service = AuthService(
                    users=repo, tokens=repo, token_service=TokenService(JWTConfig())
                )
                return await service.revoke_all_for_user(user.id)
        finally:
            await close_db()

    try:
        revoked = asyncio.run(_run())
    except StatusPageError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Revoked {revoked} refresh token(s)[/green]")


@app.command("purge-tokens")
def purge_tokens() -> None:
    """Delete expired refresh tokens."""

    async def _run() -> int:
        await init_db()
        try:
            async with get_async_session() as session:
                return await IdentityRepository(session).delete_expired_refresh_tokens(
                    datetime.now(timezone.utc)
                )
        finally:
            await close_db()

    removed = asyncio.run(_run())
    console.print(f"[green]Removed {removed} expired refresh token(s)[/green]")


@app.command("add-channel")
def add_channel(
    email: str = typer.Option(..., "--email", "-e", help="Email address of the user"),
    channel_type: ChannelType = typer.Option(..., "--type", "-t", help="Channel type"),
    target: str = typer.Option(..., "--target", help="Email address or Telegram chat id"),
    verified: bool = typer.Option(True, help="Mark the channel as verified"),
) -> None:
    """Attach a delivery channel to a user.

    Notifications only go to channels that are enabled and verified.
    """

    async def _run() -> NotificationChannel:
        await init_db()
        try:
            async with get_async_session() as session:
                user = await IdentityRepository(session).get_user_by_email(email.strip().lower())
                if user is None:
                    raise UserNotFoundError()
                return await SubscriberRepository(session).create_channel(
                    NotificationChannel(
                        id=str(uuid.uuid4()),
                        user_id=user.id,
                        type=channel_type.value,
                        target=target,
                        is_enabled=True,
                        is_verified=verified,
                    )
                )
        finally:
            await close_db()

    try:
        channel = asyncio.run(_run())
    except StatusPageError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)

    table = Table(title="Channel created")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("ID", channel.id)
    table.add_row("Type", channel.type)
    table.add_row("Target", channel.target)
    table.add_row("Verified", str(channel.is_verified))
    console.print(table)


if __name__ == "__main__":
    app()
