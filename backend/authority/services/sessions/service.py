# authority/services/sessions/service.py
from __future__ import annotations

import logging

from authority.services._shared.errors import ServiceError
from authority.services._shared.ports import AccessTokenProvider
from authority.services._shared.principal import Principal
from authority.services.accounts.service import AccountService
from authority.services.sessions.dto import LoginIn, LoginOut, TokenPairOut
from authority.services.tokens.service import TokenService

LOGGER = logging.getLogger(__name__)


class SessionService:
    """
    Session lifecycle (login / refresh / logout / revoke-all / authenticate).

    Access tokens are signed claims issued through an
    :class:`AccessTokenProvider`; refresh tokens are opaque strings held by
    the :class:`TokenService`.
    """

    def __init__(
        self,
        *,
        accounts: AccountService,
        tokens: TokenService,
        access_tokens: AccessTokenProvider,
    ) -> None:
        self.accounts = accounts
        self.tokens = tokens
        self.access_tokens = access_tokens

    def login(self, dto: LoginIn) -> LoginOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :raises ServiceError: If credentials are invalid (same message for an
            unknown email and a wrong password).
        """
        user = self.accounts.verify_credentials(dto.email, dto.password)
        if user is None:
            raise ServiceError("Invalid credentials")

        access = self.access_tokens.issue(user.claims)
        refresh = self.tokens.issue_refresh_token(user.id)
        LOGGER.info("login succeeded", extra={"user_id": user.id})
        return LoginOut(user=user, access_token=access, refresh_token=refresh)

    def refresh(self, refresh_token: str) -> TokenPairOut:
        """
        Rotate a refresh token and emit a new token pair.

        Not atomic: the old token is revoked only after the new one exists, so
        a crash in between leaves both valid until they expire.

        :raises NotFoundError: If the token is invalid or expired, or its
            owner no longer exists.
        """
        user_id = self.tokens.verify_refresh_token(refresh_token)
        user = self.accounts.get_user(user_id)

        access = self.access_tokens.issue(user.claims)
        new_refresh = self.tokens.issue_refresh_token(user.id)
        self.tokens.revoke_refresh_token(refresh_token)
        return TokenPairOut(access_token=access, refresh_token=new_refresh)

    def logout(self, refresh_token: str) -> bool:
        """Revoke one refresh token. :returns: Whether it existed."""
        return self.tokens.revoke_refresh_token(refresh_token)

    revoke = logout

    def revoke_all(self, access_token: str) -> int:
        """
        Sign the bearer of ``access_token`` out of every device.

        :raises InvalidTokenError: If the access token does not verify.
        :returns: Number of refresh tokens revoked.
        """
        caller = self.authenticate(access_token)
        return self.tokens.revoke_all_refresh_tokens(caller.id)

    def authenticate(self, access_token: str) -> Principal:
        """
        Resolve a bearer access token into the calling principal.

        :raises InvalidTokenError: On a malformed, tampered or expired token.
        """
        return self.access_tokens.verify(access_token).principal
