"""
Password hashing and session token helpers.

Passwords go through ``werkzeug.security`` with the scrypt method, stored as
``scrypt:n:r:p$salt$hash``. The cost parameters travel with each hash, so they
can be raised later without invalidating existing accounts.
"""

from __future__ import annotations

import secrets

from werkzeug.security import check_password_hash, generate_password_hash

PASSWORD_HASH_METHOD = "scrypt"
SALT_LENGTH = 16


def hash_password(password: str) -> str:
    return generate_password_hash(password, method=PASSWORD_HASH_METHOD, salt_length=SALT_LENGTH)


def verify_password(password: str, stored: str | None) -> bool:
    """Check ``password`` against a stored hash. Missing or malformed hashes never match."""
    if not stored:
        return False
    try:
        return check_password_hash(stored, password)
    except ValueError:
        # unknown hash method or unparsable cost parameters
        return False


def generate_session_token(num_bytes: int = 32) -> str:
    return secrets.token_urlsafe(num_bytes)
