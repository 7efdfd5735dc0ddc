"""Flask CLI commands for account bootstrap."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext
from marshmallow import ValidationError

from authority.core.logger import correlation_scope
from authority.schemas.accounts import CreateAdminSchema
from authority.services._shared.errors import ServiceError
from authority.services._shared.principal import Role
from authority.wiring import get_services

LOGGER = logging.getLogger(__name__)


def _format_errors(messages: dict[str, list[str]] | list[str]) -> str:
    if isinstance(messages, dict):
        return "; ".join(f"{field}: {' '.join(errs)}" for field, errs in sorted(messages.items()))
    return " ".join(messages)


@click.group("users")
def users_cli() -> None:
    """Account administration commands."""


@users_cli.command("create-superadmin")
@click.option("--email", required=True)
@click.option("--username", required=True)
@click.option("--password", required=True, prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_superadmin_command(email: str, username: str, password: str) -> None:
    """Create a verified super admin account."""
    try:
        dto = CreateAdminSchema(role=Role.SUPERADMIN).load(
            {"email": email, "username": username, "password": password}
        )
    except ValidationError as exc:
        raise click.UsageError(_format_errors(exc.messages)) from exc

    accounts = get_services().accounts
    with correlation_scope():
        try:
            user = accounts.create_user(dto)
            accounts.mark_verified(user.id)
        except ServiceError as exc:
            raise click.ClickException(str(exc)) from exc
    LOGGER.info("superadmin created", extra={"user_id": user.id, "action": "create_superadmin"})
    click.echo(f"Created superadmin {user.username} <{user.email}> (id={user.id}).")
