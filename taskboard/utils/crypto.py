"""
Crypto utilities: bcrypt password hashing.

The cost factor comes from the ``BCRYPT_ROUNDS`` config key when an
application context is active (the testing config lowers it), otherwise 12.
"""

import bcrypt
from flask import current_app, has_app_context

DEFAULT_ROUNDS = 12

# bcrypt only reads the first 72 bytes; recent releases reject longer input.
MAX_BCRYPT_BYTES = 72


def _rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", DEFAULT_ROUNDS))
    return DEFAULT_ROUNDS


def _encode(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:MAX_BCRYPT_BYTES]


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password with bcrypt."""
    salt = bcrypt.gensalt(rounds=_rounds())
    return bcrypt.hashpw(_encode(plain_password), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain-text password against its bcrypt hash."""
    if not password_hash or not plain_password:
        return False
    return bcrypt.checkpw(_encode(plain_password), password_hash.encode("utf-8"))
