"""
Password Hashing
================

passlib-backed implementation of IPasswordHasher.
"""

from passlib.context import CryptContext

from helpdesk.users.application import IPasswordHasher


class PasslibPasswordHasher(IPasswordHasher):
    """PBKDF2-SHA256 hashes via passlib's CryptContext."""

    def __init__(self, schemes: tuple = ("pbkdf2_sha256",)):
        self._context = CryptContext(schemes=list(schemes), deprecated="auto")

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return self._context.verify(password, password_hash)
        except ValueError:
            # Unrecognized or corrupt hash
            return False
