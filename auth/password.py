"""
Password hashing and verification.

bcrypt hashes look like ``$2b$<cost>$<salt+digest>``; the cost is read back
from the stored hash so logins can upgrade hashes made with an older
``config.bcrypt_rounds``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

import bcrypt

from config.settings import config


def hash_password(password: str) -> str:
    """Hash a password with bcrypt (auto-salted, ``config.bcrypt_rounds``)."""
    salt = bcrypt.gensalt(rounds=config.bcrypt_rounds)
    return bcrypt.hashpw(password.encode(), salt).decode()


@lru_cache(maxsize=None)
def _placeholder_hash(rounds: int) -> bytes:
    return bcrypt.hashpw(b"placeholder-password", bcrypt.gensalt(rounds=rounds))


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """
    Constant-time comparison against a bcrypt hash.

    With no stored hash (unknown account) a placeholder hash of the same cost
    is checked anyway and the result is always False, so a miss takes as
    long as a wrong password.
    """
    if password_hash is None:
        stored = _placeholder_hash(config.bcrypt_rounds)
    else:
        stored = password_hash.encode()
    try:
        matched = bcrypt.checkpw(password.encode(), stored)
    except (ValueError, TypeError):
        return False
    return matched and password_hash is not None


def hash_cost(password_hash: str) -> int | None:
    parts = password_hash.split("$")
    if len(parts) < 4 or not parts[2].isdigit():
        return None
    return int(parts[2])


def needs_rehash(password_hash: str) -> bool:
    """True when the stored hash was made with a different work factor."""
    return hash_cost(password_hash) != config.bcrypt_rounds
