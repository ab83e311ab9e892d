"""
Security helpers for password hashing, session tokens and request
authentication.

Tokens are a lightweight JSON Web Token (JWT) implementation using
HMAC‑SHA256 signatures and base64url encoding.  They carry the user id
in ``sub`` together with ``iat`` and ``exp`` timestamps and are not
stored anywhere: every request is verified by signature and expiry
alone.  Passwords are hashed with PBKDF2‑HMAC‑SHA256 and a random
per‑password salt.  The iteration count is written into the hash so
the work factor can be raised without invalidating stored hashes.
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Any, Dict, Optional

from fastapi import Request

from .config import settings
from .errors import ExpiredTokenError, InvalidTokenError, MissingTokenError

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer "
PASSWORD_HASH_SCHEME = "pbkdf2_sha256"


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC‑SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(
    user_id: int,
    expires_delta: Optional[int] = None,
    now: Optional[float] = None,
) -> str:
    """Create a signed session token for ``user_id``.

    The token is a string of the form ``header.payload.signature``,
    where each part is base64url encoded.  Clients must include it in
    the ``Authorization`` header as ``Bearer <token>``.

    Parameters
    ----------
    user_id : int
        Identifier of the authenticated user, stored as ``sub``.
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.
    now : Optional[float]
        Issue time as a UNIX timestamp; defaults to the current time.

    Returns
    -------
    str
        A signed token.
    """
    if expires_delta is None:
        expires_delta = settings.access_token_expire_minutes * 60
    issued_at = int(now if now is not None else time.time())
    payload = {"sub": str(user_id), "iat": issued_at, "exp": issued_at + int(expires_delta)}
    header = {"alg": TOKEN_ALGORITHM, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str, now: Optional[float] = None) -> Dict[str, Any]:
    """Verify a token and return its payload.

    The signature is checked first, using a constant‑time comparison,
    and only then the ``exp`` claim.  Any structural or cryptographic
    problem raises ``InvalidTokenError``; an intact token whose expiry
    has passed raises ``ExpiredTokenError``.
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise InvalidTokenError()
    header_b64, payload_b64, signature_b64 = parts
    try:
        actual_sig = _b64_url_decode(signature_b64)
        header = json.loads(_b64_url_decode(header_b64).decode("utf-8"))
    except (binascii.Error, ValueError):
        raise InvalidTokenError() from None
    if not isinstance(header, dict) or header.get("alg") != TOKEN_ALGORITHM:
        raise InvalidTokenError()

    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    expected_sig = _sign(signing_input, settings.secret_key)
    if not hmac.compare_digest(expected_sig, actual_sig):
        raise InvalidTokenError()

    try:
        payload = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (binascii.Error, ValueError):
        raise InvalidTokenError() from None
    if not isinstance(payload, dict):
        raise InvalidTokenError()
    exp = payload.get("exp")
    if not isinstance(exp, int) or isinstance(exp, bool):
        raise InvalidTokenError()
    current = now if now is not None else time.time()
    if current >= exp:
        raise ExpiredTokenError()
    return payload


def verify_access_token(token: str, now: Optional[float] = None) -> int:
    """Verify a token and return the user id it was issued for."""
    payload = decode_access_token(token, now=now)
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise InvalidTokenError() from None


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    # Servers strip trailing whitespace, so "Bearer " arrives as "Bearer".
    if not authorization or authorization.strip() in ("", BEARER_PREFIX.strip()):
        raise MissingTokenError()
    if not authorization.startswith(BEARER_PREFIX):
        raise InvalidTokenError()
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise MissingTokenError()
    return token


async def authenticate(authorization: Optional[str]):
    """Resolve a raw ``Authorization`` header into the user it belongs to.

    Returns the public user record (``UserRead``, no password hash).
    Raises ``MissingTokenError``, ``InvalidTokenError`` or
    ``ExpiredTokenError``.  A token for a user that no longer exists
    is reported as invalid.
    """
    from event_planner_api.app.services.user_service import UserService

    token = extract_bearer_token(authorization)
    user_id = verify_access_token(token)
    user = await UserService.get_user_by_id(user_id)
    if user is None:
        logger.info("Rejected token for missing user %s", user_id)
        raise InvalidTokenError()
    return user


async def get_current_user(request: Request):
    """Dependency that retrieves the current authenticated user.

    On success the user is also attached to ``request.state.user`` so
    downstream code can read it without repeating the lookup.  Failures
    propagate as ``AuthError`` subclasses and are rendered as 401 by
    the application's exception handler.
    """
    user = await authenticate(request.headers.get("Authorization"))
    request.state.user = user
    return user


def hash_password(password: str, iterations: Optional[int] = None) -> str:
    """Hash a password using PBKDF2‑HMAC with SHA‑256.

    A 16‑byte random salt is generated for each password.  The result
    has the form ``pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>``.
    ``iterations`` defaults to ``settings.password_hash_iterations``.
    """
    rounds = iterations or settings.password_hash_iterations
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return f"{PASSWORD_HASH_SCHEME}${rounds}${salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored hash string.

    Recomputes the PBKDF2 digest with the stored salt and iteration
    count and compares it in constant time.  A malformed stored value
    never matches.
    """
    try:
        scheme, rounds, salt_hex, hash_hex = hashed_password.split("$")
        if scheme != PASSWORD_HASH_SCHEME:
            return False
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
        iterations = int(rounds)
    except (AttributeError, ValueError):
        return False
    if iterations <= 0:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(dk, stored_hash)
