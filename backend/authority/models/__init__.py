from authority.models.token import Token
from authority.models.user import User

__all__ = [
    "Token",
    "User",
]
