from __future__ import annotations

from .dto import SignupIn
from .service import RegistrationService

__all__ = ["RegistrationService", "SignupIn"]
