"""Command-line interface for LinkAuth.

``serve`` runs the delivery worker and the token sweeper until interrupted.
The other commands perform one operation against the configured storage.
Emails are sent before the command returns, and an issuance whose email
cannot be sent is undone.
"""

import asyncio
import sys
from typing import Any, Awaitable, Callable, NoReturn, TypeVar

import click

from linkauth import __version__
from linkauth.core.config import Settings, get_settings
from linkauth.core.exceptions import LinkAuthError
from linkauth.core.logging import LoggingContext, configure_logging, get_logger
from linkauth.infrastructure.runtime import Runtime

T = TypeVar("T")


def _run_once(settings: Settings, operation: Callable[[Runtime], Awaitable[T]]) -> T:
    """Run one operation on a fresh runtime and close it."""

    async def execute() -> T:
        runtime = Runtime(settings)
        try:
            await runtime.open()
            return await operation(runtime)
        finally:
            await runtime.close()

    return asyncio.run(execute())


def _fail(error: Exception) -> NoReturn:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


@click.group()
@click.version_option(version=__version__, prog_name="LinkAuth")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides LINKAUTH_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """LinkAuth - Magic link authentication for your apps.

    Configuration is read from LINKAUTH_* environment variables and .env.
    """
    settings = get_settings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(settings)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the email delivery worker and the expired token sweeper."""
    settings = _settings(ctx)
    logger = get_logger(__name__)
    logger.info(
        "Starting LinkAuth",
        environment=settings.environment,
        storage_backend=settings.storage_backend,
    )
    asyncio.run(Runtime(settings).serve())


@cli.command("register-app")
@click.option("--name", required=True, help="Display name of the app")
@click.option("--email", required=True, help="Admin email, receives the app secret")
@click.option("--redirect-url", required=True, help="Default landing URL of magic links")
@click.option("--duration", type=int, default=None, help="Session duration in seconds")
@click.option("--quota", type=int, default=None, help="Maximum number of active users")
@click.pass_context
def register_app(
    ctx: click.Context,
    name: str,
    email: str,
    redirect_url: str,
    duration: int | None,
    quota: int | None,
) -> None:
    """Register an app. The secret is emailed to the admin."""
    with LoggingContext(command="register-app"):
        try:
            app_id = _run_once(
                _settings(ctx),
                lambda rt: rt.service.register_app(
                    name, email, redirect_url, duration, quota, deliver_now=True
                ),
            )
        except LinkAuthError as e:
            _fail(e)
    click.echo(f"App registered: {app_id}")
    click.echo(f"The app secret was sent to {email}.")


@cli.command("request-link")
@click.option("--secret", required=True, help="App secret")
@click.option("--email", required=True, help="User email, receives the magic link")
@click.option("--redirect-url", default=None, help="Landing URL overriding the app default")
@click.option("--duration", type=int, default=None, help="Session duration in seconds")
@click.pass_context
def request_link(
    ctx: click.Context,
    secret: str,
    email: str,
    redirect_url: str | None,
    duration: int | None,
) -> None:
    """Issue a token for a user and email the magic link."""
    with LoggingContext(command="request-link"):
        try:
            issued = _run_once(
                _settings(ctx),
                lambda rt: rt.service.request_user_link(
                    secret, email, redirect_url, duration, deliver_now=True
                ),
            )
        except LinkAuthError as e:
            _fail(e)
    click.echo(f"Magic link sent to {email}, valid until {issued.expires_at.isoformat()}.")


@cli.command("validate-token")
@click.option("--secret", required=True, help="App secret")
@click.option("--token", required=True, help="Token to validate")
@click.pass_context
def validate_token(ctx: click.Context, secret: str, token: str) -> None:
    """Check a user token. Exits with status 1 when it is not valid."""
    with LoggingContext(command="validate-token"):
        valid = _run_once(
            _settings(ctx), lambda rt: rt.service.validate_user_token(token, secret)
        )
    if not valid:
        click.echo("invalid", err=True)
        sys.exit(1)
    click.echo("valid")


def _print_app(app: Any, current_users: int | None = None) -> None:
    click.echo(f"""
  ID:           {app.id}
  Name:         {app.name}
  Admin email:  {app.admin_email}
  Redirect URL: {app.redirect_url}
  Duration:     {app.session_duration} seconds
  Users quota:  {app.users_quota}""")
    if current_users is not None:
        click.echo(f"  Active users: {current_users}")


@cli.command("app-info")
@click.option("--secret", required=True, help="App secret")
@click.option("--token", required=True, help="Admin session token")
@click.pass_context
def app_info(ctx: click.Context, secret: str, token: str) -> None:
    """Show an app and its number of active users."""
    with LoggingContext(command="app-info"):
        try:
            view = _run_once(_settings(ctx), lambda rt: rt.service.app_metadata(token, secret))
        except LinkAuthError as e:
            _fail(e)
    _print_app(view, view.current_users)


@cli.command("update-app")
@click.option("--secret", required=True, help="App secret")
@click.option("--token", required=True, help="Admin session token")
@click.option("--name", default=None, help="New display name")
@click.option("--redirect-url", default=None, help="New default landing URL")
@click.option("--duration", type=int, default=None, help="New session duration in seconds")
@click.pass_context
def update_app(
    ctx: click.Context,
    secret: str,
    token: str,
    name: str | None,
    redirect_url: str | None,
    duration: int | None,
) -> None:
    """Update the name, landing URL or session duration of an app."""
    with LoggingContext(command="update-app"):
        try:
            app = _run_once(
                _settings(ctx),
                lambda rt: rt.service.update_app(token, secret, name, redirect_url, duration),
            )
        except LinkAuthError as e:
            _fail(e)
    _print_app(app)


@cli.command("delete-app")
@click.option("--secret", required=True, help="App secret")
@click.option("--token", required=True, help="Admin session token")
@click.confirmation_option(prompt="Delete the app and all of its sessions?")
@click.pass_context
def delete_app(ctx: click.Context, secret: str, token: str) -> None:
    """Delete an app with all of its tokens."""
    with LoggingContext(command="delete-app"):
        try:
            _run_once(_settings(ctx), lambda rt: rt.service.delete_app(token, secret))
        except LinkAuthError as e:
            _fail(e)
    click.echo("App deleted.")


@cli.command()
@click.pass_context
def sweep(ctx: click.Context) -> None:
    """Delete every expired token now."""
    with LoggingContext(command="sweep"):
        deleted = _run_once(_settings(ctx), lambda rt: rt.tokens.sweep_expired())
    click.echo(f"Deleted {deleted} expired token(s).")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `linkauth` command is run
    or when using `python -m linkauth`.
    """
    cli()


if __name__ == "__main__":
    main()
