"""Password hashing through Werkzeug's scrypt helpers."""

from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash

from authority.services._shared.ports import CredentialHasher


@dataclass(frozen=True, slots=True)
class WerkzeugCredentialHasher(CredentialHasher):
    """
    scrypt hasher whose work factor is the log2 of the CPU/memory cost.

    ``work_factor=10`` yields ``scrypt:1024:8:1``. Hashes produced with a
    different factor still verify, since the parameters are encoded in them.

    :param work_factor: log2 of scrypt's ``N``; must be between 1 and 20.
    """

    work_factor: int = 10

    def __post_init__(self) -> None:
        if not 1 <= self.work_factor <= 20:
            raise ValueError("HASHER_WORK_FACTOR must be between 1 and 20.")

    @property
    def method(self) -> str:
        return f"scrypt:{2 ** self.work_factor}:8:1"

    def hash(self, plain: str) -> str:
        if not isinstance(plain, str) or not plain:
            raise ValueError("Password must be a non-empty string.")
        return generate_password_hash(plain, method=self.method)

    def verify(self, plain: str, hashed: str) -> bool:
        if not hashed or not isinstance(plain, str):
            return False
        # ``check_password_hash`` is not typed and returns ``Any``; coerce to bool for mypy.
        return bool(check_password_hash(hashed, plain))
