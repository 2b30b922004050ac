"""
Session token creation and verification.

Tokens are unpadded url-safe base64 JSON payloads (``id``, ``iat``, ``exp``) signed
with HMAC-SHA256.  Secret key is loaded from ``config.jwt_secret``
(env var: ``JWT_SECRET``).
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
import json
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode
from typing import Optional

from config.settings import config


class TokenError(Exception):
    """Base class for rejected tokens."""


class TokenExpired(TokenError):
    pass


class TokenMalformed(TokenError):
    pass


def _b64encode(raw: bytes) -> str:
    return urlsafe_b64encode(raw).rstrip(b"=").decode()


def _b64decode(text: str) -> bytes:
    return urlsafe_b64decode(text + "=" * (-len(text) % 4))


def _sign(raw: bytes) -> str:
    return hmac.new(config.jwt_secret.encode(), raw, hashlib.sha256).hexdigest()


def create_token(user_id: int, expires_in: Optional[int] = None) -> str:
    """Create a signed token containing ``user_id`` and expiry."""
    now = int(time.time())
    lifetime = config.jwt_expiry_seconds if expires_in is None else expires_in
    payload = {"id": user_id, "iat": now, "exp": now + lifetime}
    raw = json.dumps(payload, separators=(",", ":")).encode()
    return _b64encode(raw) + "." + _sign(raw)


def verify_token(token: str) -> int:
    """
    Verify token and return the bound user id.

    Raises ``TokenMalformed`` for anything structurally wrong or wrongly
    signed, and ``TokenExpired`` once ``exp`` has passed.  The signature is
    checked before the payload is trusted for anything else.
    """
    parts = token.split(".")
    if len(parts) != 2 or not all(parts):
        raise TokenMalformed("bad format")

    try:
        raw = _b64decode(parts[0])
    except (binascii.Error, ValueError) as exc:
        raise TokenMalformed("bad encoding") from exc

    if not hmac.compare_digest(parts[1].encode(), _sign(raw).encode()):
        raise TokenMalformed("bad signature")

    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise TokenMalformed("bad payload") from exc

    if not isinstance(payload, dict):
        raise TokenMalformed("bad payload")
    user_id = payload.get("id")
    exp = payload.get("exp")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise TokenMalformed("missing subject")
    if not isinstance(exp, (int, float)):
        raise TokenMalformed("missing expiry")
    if exp < time.time():
        raise TokenExpired("token expired")
    return user_id
