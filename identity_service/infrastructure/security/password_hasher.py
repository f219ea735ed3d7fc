from __future__ import annotations

from passlib.context import CryptContext

from identity_service.application.ports.password_hasher_port import PasswordHasherPort


class PasswordHasher(PasswordHasherPort):
    def __init__(self, *, schemes: tuple[str, ...] = ("argon2", "bcrypt")):
        # New hashes use the first scheme; hashes from the others still verify.
        self._ctx = CryptContext(schemes=list(schemes), deprecated="auto")

    def hash(self, plain_password: str) -> str:
        return self._ctx.hash(plain_password)

    def verify(self, plain_password: str, password_hash: str) -> bool:
        if not plain_password or not password_hash:
            return False
        try:
            return self._ctx.verify(plain_password, password_hash)
        except ValueError:
            # Unknown or malformed hash.
            return False
