import base64
import binascii
import hashlib
import hmac
import os
import secrets
from datetime import UTC, datetime, timedelta

import jwt

from fleetgate.core.config import get_settings


PASSWORD_SCHEME = "pbkdf2_sha256"
PASSWORD_ITERATIONS = 120_000
PASSWORD_SALT_BYTES = 16
DEVICE_TOKEN_BYTES = 32
OPERATOR_TOKEN_TYPE = "operator"


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def hash_password(password: str) -> str:
    """Operator password hash as ``scheme$iterations$salt$digest``."""
    salt = os.urandom(PASSWORD_SALT_BYTES)
    digest = _derive(password, salt, PASSWORD_ITERATIONS)
    encoded_salt = base64.urlsafe_b64encode(salt).decode("ascii")
    encoded_digest = base64.urlsafe_b64encode(digest).decode("ascii")
    return f"{PASSWORD_SCHEME}${PASSWORD_ITERATIONS}${encoded_salt}${encoded_digest}"


def verify_password(password: str, password_hash: str) -> bool:
    parts = password_hash.split("$", 3)
    if len(parts) != 4 or parts[0] != PASSWORD_SCHEME:
        return False

    _, iterations, encoded_salt, encoded_digest = parts
    try:
        salt = base64.urlsafe_b64decode(encoded_salt)
        expected = base64.urlsafe_b64decode(encoded_digest)
        rounds = int(iterations)
    except (binascii.Error, ValueError):
        return False
    return hmac.compare_digest(_derive(password, salt, rounds), expected)


def create_access_token(subject: str, role: str | None = None, expires_minutes: int | None = None) -> str:
    settings = get_settings()
    issued_at = datetime.now(UTC)
    lifetime = timedelta(minutes=expires_minutes or settings.jwt_expire_minutes)
    claims = {
        "sub": subject,
        "typ": OPERATOR_TOKEN_TYPE,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + lifetime).timestamp()),
    }
    if role:
        claims["role"] = role
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Decode an operator JWT; raises ``jwt.InvalidTokenError`` on any failure."""
    settings = get_settings()
    claims = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp", "sub"]},
    )
    if claims.get("typ") != OPERATOR_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Not an operator token")
    return claims


def new_device_token() -> str:
    return "dt_" + secrets.token_urlsafe(DEVICE_TOKEN_BYTES)


def membership_key_provider() -> bytes:
    """Key provider for entitlement tokens, backed by MEMBERSHIP_SECRET.

    Resolved on every call so a rotated secret (settings cache cleared) takes
    effect without rebuilding the codec.
    """
    return get_settings().membership_secret.encode("utf-8")
