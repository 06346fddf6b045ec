"""
Security utilities - password hashing

hash_password is called by the User write-path interceptor in
bookstore.models.user and by the Core bulk seeder, which bypasses the ORM;
services never hash on their own.
"""
import re
from typing import Optional

import bcrypt

from bookstore.core.config import settings

# $2a$, $2b$ or $2y$, two-digit cost, 53 chars of salt+digest
_BCRYPT_HASH_RE = re.compile(r"^\$2[aby]\$\d{2}\$[./A-Za-z0-9]{53}$")

# bcrypt only looks at the first 72 bytes; newer releases reject longer input
MAX_PASSWORD_BYTES = 72


def is_password_hash(value: Optional[str]) -> bool:
    """Check whether a value is already a bcrypt digest."""
    return bool(value) and _BCRYPT_HASH_RE.match(value) is not None


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Generate a salted bcrypt hash"""
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    ).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    if not plain_password or not is_password_hash(hashed_password):
        return False
    encoded = plain_password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, hashed_password.encode("utf-8"))
