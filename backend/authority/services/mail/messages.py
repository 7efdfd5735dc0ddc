"""Composition of account emails (verification, password reset)."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from jinja2 import Environment, PackageLoader, select_autoescape

from authority.services._shared.ports import MailSender

LOGGER = logging.getLogger(__name__)

VERIFY_SUBJECT = "Verify Your Email Address"
RESET_SUBJECT = "Reset Your Password"

# Templates live in authority/templates/mail; autoescaping covers every value
_TEMPLATES = Environment(
    loader=PackageLoader("authority", "templates/mail"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def verification_link(frontend_url: str, token: str) -> str:
    return f"{frontend_url.rstrip('/')}/verify-email/{token}"


def reset_link(frontend_url: str, token: str) -> str:
    return f"{frontend_url.rstrip('/')}/reset-password/{token}"


def render_verification(username: str, link: str) -> str:
    return _TEMPLATES.get_template("verify_email.html").render(
        title=VERIFY_SUBJECT, username=username, link=link
    )


def render_password_reset(username: str, email: str, link: str) -> str:
    return _TEMPLATES.get_template("reset_password.html").render(
        title=RESET_SUBJECT, username=username, email=email, link=link
    )


@dataclass(frozen=True, slots=True)
class AccountMailer:
    """
    Build and hand account emails to a :class:`MailSender`.

    Send failures propagate to the caller.

    :param sender: Outgoing mail port.
    :param frontend_url: Base URL of the client application.
    """

    sender: MailSender
    frontend_url: str

    def send_verification(self, *, email: str, username: str, token: str) -> None:
        html = render_verification(username, verification_link(self.frontend_url, token))
        self.sender.send(email, VERIFY_SUBJECT, html)

    def send_password_reset(self, *, email: str, username: str, token: str) -> None:
        html = render_password_reset(username, email, reset_link(self.frontend_url, token))
        self.sender.send(email, RESET_SUBJECT, html)
