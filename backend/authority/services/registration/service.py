"""
RegistrationService
===================

Self-service signup and email verification:

- Creates a ``user``-role account, issues a verification token and mails it.
- Redeems verification tokens exactly once.
- Re-sends verification mail without revealing whether an account exists.
"""

from __future__ import annotations

import logging

from authority.services._shared.principal import Role
from authority.services.accounts.dto import UserCreateIn, UserOut
from authority.services.accounts.service import AccountService
from authority.services.mail.messages import AccountMailer
from authority.services.registration.dto import SignupIn
from authority.services.tokens.service import TokenService

LOGGER = logging.getLogger(__name__)


class RegistrationService:
    """Orchestrates signup, email verification and verification resends."""

    def __init__(
        self, *, accounts: AccountService, tokens: TokenService, mailer: AccountMailer
    ) -> None:
        self.accounts = accounts
        self.tokens = tokens
        self.mailer = mailer

    def signup(self, dto: SignupIn) -> UserOut:
        """
        Register a ``user`` account and send its verification email.

        The account is committed before the token is issued; a mail failure
        propagates but leaves the account in place, and
        :meth:`resend_verification` can recover.

        :raises ConflictError: When the email or username is already taken.
        """
        user = self.accounts.create_user(
            UserCreateIn(
                email=dto.email, username=dto.username, password=dto.password, role=Role.USER
            )
        )
        self._send_verification(user)
        return user

    def verify_email(self, token: str) -> UserOut:
        """
        Consume a verification token and mark its owner verified.

        :raises NotFoundError: If the token is invalid or expired, or the
            account no longer exists.
        """
        user_id = self.tokens.consume_verification_token(token)
        user = self.accounts.mark_verified(user_id)
        LOGGER.info("email verified", extra={"user_id": user_id})
        return user

    def resend_verification(self, email: str) -> None:
        """
        Issue and mail a fresh verification token to an unverified account.

        Unknown and already-verified addresses are ignored silently.
        """
        user = self.accounts.find_by_email(email)
        if user is None or user.is_verified:
            return
        self._send_verification(user)

    def _send_verification(self, user: UserOut) -> None:
        token = self.tokens.issue_verification_token(user.id)
        self.mailer.send_verification(email=user.email, username=user.username, token=token)
