# authority/infra/jwt/flask_jwt_access_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

from authority.services._shared.errors import InvalidTokenError
from authority.services._shared.ports import AccessTokenProvider
from authority.services._shared.principal import IdentityClaims, Role

# Flask-JWT-Extended sets "type": "access" | "refresh"
ACCESS_TOKEN_TYPE = "access"


@dataclass(slots=True)
class FlaskJWTAccessTokenProvider(AccessTokenProvider):
    """
    Adapter for Flask-JWT-Extended (HS256 with ``JWT_SECRET_KEY``).

    The subject is the user id as a string; ``email`` and ``role`` travel as
    additional claims.

    .. note::
       Requires an active Flask app context with proper JWT settings.

    :param expires_delta: Access token lifetime; ``None`` defers to
        ``JWT_ACCESS_TOKEN_EXPIRES``.
    """

    expires_delta: timedelta | None = None

    def issue(self, claims: IdentityClaims) -> str:
        from flask_jwt_extended import create_access_token

        return cast(
            str,
            create_access_token(
                identity=str(claims.user_id),
                additional_claims={"email": claims.email, "role": claims.role.value},
                expires_delta=self.expires_delta,
            ),
        )

    def verify(self, token: str) -> IdentityClaims:
        from flask_jwt_extended import decode_token
        from flask_jwt_extended.exceptions import JWTExtendedException
        from jwt.exceptions import PyJWTError

        if not isinstance(token, str) or not token.strip():
            raise InvalidTokenError("missing token")

        try:
            payload = cast(dict[str, Any], decode_token(token.strip()))
        except (PyJWTError, JWTExtendedException) as exc:
            raise InvalidTokenError(type(exc).__name__) from exc

        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidTokenError("wrong token type")
        return self._claims_from(payload)

    @staticmethod
    def _claims_from(payload: dict[str, Any]) -> IdentityClaims:
        sub = payload.get("sub")
        email = payload.get("email")
        role = payload.get("role")
        if not isinstance(sub, str) or not sub.isdigit():
            raise InvalidTokenError("malformed subject")
        if not isinstance(email, str) or not email:
            raise InvalidTokenError("malformed email claim")
        try:
            parsed_role = Role.parse(cast(str, role))
        except ValueError as exc:
            raise InvalidTokenError("unknown role") from exc
        return IdentityClaims(user_id=int(sub), email=email, role=parsed_role)
