"""
Password hashing for the credential store.

Stored hashes have the form ``<salt>$<sha256 hex digest>``. The salt is a
random 32-character hex string drawn per password and the digest covers the
password followed by that salt. Changing a password draws a new salt.
"""

import hashlib
import hmac
import uuid

SALT_SEPARATOR = "$"


def _digest(password: str, salt: str) -> str:
    return hashlib.sha256((password + salt).encode()).hexdigest()


class PasswordHasher:
    """Salted SHA-256 password hashing."""

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password under a fresh salt. Returns 'salt$digest'."""
        salt = uuid.uuid4().hex
        return f"{salt}{SALT_SEPARATOR}{_digest(password, salt)}"

    @staticmethod
    def verify_password(password: str, hashed: str) -> bool:
        """
        Check a password against a stored 'salt$digest' value.
        Malformed stored values never verify.
        """
        salt, separator, digest = hashed.partition(SALT_SEPARATOR)
        if not separator or not salt or not digest:
            return False
        return hmac.compare_digest(_digest(password, salt), digest)
