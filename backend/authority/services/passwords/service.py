# authority/services/passwords/service.py
from __future__ import annotations

import logging

from authority.services._shared.errors import ServiceError
from authority.services._shared.policies.accounts import AccountAction
from authority.services._shared.principal import Principal
from authority.services.accounts.service import AccountService
from authority.services.mail.messages import AccountMailer
from authority.services.passwords.dto import PasswordChangeIn, PasswordResetIn
from authority.services.tokens.service import TokenService

LOGGER = logging.getLogger(__name__)


class PasswordService:
    """
    Forgot-password flow and authenticated password changes.

    Every successful password mutation revokes all refresh tokens of the
    account, signing it out everywhere.
    """

    def __init__(
        self, *, accounts: AccountService, tokens: TokenService, mailer: AccountMailer
    ) -> None:
        self.accounts = accounts
        self.tokens = tokens
        self.mailer = mailer

    def request_reset(self, email: str) -> None:
        """
        Mail a password reset link, invalidating any earlier reset token.

        Unknown emails are ignored silently (no account enumeration).
        """
        user = self.accounts.find_by_email(email)
        if user is None:
            LOGGER.info("password reset requested for unknown account")
            return
        token = self.tokens.issue_password_reset_token(user.id)
        self.mailer.send_password_reset(email=user.email, username=user.username, token=token)
        LOGGER.info("password reset requested", extra={"user_id": user.id})

    def reset_password(self, dto: PasswordResetIn) -> None:
        """
        Set a new password with a reset token.

        The token is verified first and consumed only after the update
        succeeds, so a failed update leaves it usable.

        :raises NotFoundError: If the token is invalid or expired, or the
            account no longer exists.
        """
        user_id = self.tokens.verify_password_reset_token(dto.token)
        self.accounts.update_password(user_id, dto.new_password)
        self.tokens.consume_password_reset_token(dto.token)
        self.tokens.revoke_all_refresh_tokens(user_id)

    def change_password(self, caller: Principal, user_id: int, dto: PasswordChangeIn) -> None:
        """
        Change the caller's own password.

        :raises AuthorizationError: If ``caller`` is not the account owner.
        :raises ServiceError: If the old password is wrong.
        :raises NotFoundError: If the account does not exist.
        """
        self.accounts.ensure_allowed(AccountAction.CHANGE_PASSWORD, caller, user_id)
        if not self.accounts.check_password(user_id, dto.old_password):
            raise ServiceError("Current password is incorrect")
        self.accounts.update_password(user_id, dto.new_password)
        self.tokens.revoke_all_refresh_tokens(user_id)
