"""Flask CLI commands for token maintenance."""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext

from authority.core.logger import correlation_scope
from authority.jobs.token_sweeper import TokenSweeper
from authority.services._shared.errors import ServiceError
from authority.wiring import get_services


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh, verification and reset token maintenance."""


@tokens_cli.command("sweep")
@with_appcontext
def sweep_command() -> None:
    """Delete every expired token record once and print the count."""
    with correlation_scope():
        try:
            deleted = get_services().tokens.sweep_expired()
        except ServiceError as exc:
            raise click.ClickException(str(exc)) from exc
    click.echo(f"Deleted {deleted} expired token(s).")


@tokens_cli.command("sweeper")
@click.option(
    "--interval",
    type=click.IntRange(min=1),
    default=None,
    help="Seconds between sweeps (defaults to TOKEN_SWEEP_INTERVAL_SECONDS).",
)
@click.option("--once", is_flag=True, help="Run a single sweep and exit.")
@with_appcontext
def sweeper_command(interval: int | None, once: bool) -> None:
    """Run the background sweeper in the foreground until interrupted."""
    app = current_app._get_current_object()  # type: ignore[attr-defined]
    seconds = interval or int(app.config.get("TOKEN_SWEEP_INTERVAL_SECONDS", 3600))
    sweeper = TokenSweeper(get_services(app).tokens, interval=seconds, app=app)

    if once:
        deleted = sweeper.run_once()
        if deleted is None:
            raise click.ClickException("Sweep failed; see logs.")
        click.echo(f"Deleted {deleted} expired token(s).")
        return

    click.echo(f"Sweeping expired tokens every {seconds}s. Press Ctrl+C to stop.")
    sweeper.start()
    try:
        sweeper.wait()
    except KeyboardInterrupt:
        click.echo("Stopping sweeper.")
    finally:
        sweeper.stop()


@tokens_cli.command("stats")
@click.argument("user_id", type=click.IntRange(min=1))
@with_appcontext
def stats_command(user_id: int) -> None:
    """Print live token counts per kind for USER_ID."""
    try:
        stats = get_services().tokens.stats(user_id)
    except ServiceError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"refresh={stats.refresh}")
    click.echo(f"verification={stats.verification}")
    click.echo(f"passwordReset={stats.password_reset}")
