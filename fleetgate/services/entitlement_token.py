"""Signed offline entitlement tokens.

A token is ``<claims>.<signature>``: the claims segment is the unpadded
base64url encoding of a JSON object, the signature segment is the unpadded
base64url HMAC-SHA256 of the *encoded* claims segment. Devices hold the same
secret and verify tokens without calling the server, so everything a device
needs lives in the claims and the token expires on its own.
"""

import base64
import binascii
import hashlib
import hmac
import json
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

TOKEN_VALIDITY = timedelta(days=7)
SEGMENT_SEPARATOR = "."

KeyProvider = Callable[[], bytes]
Clock = Callable[[], datetime]
VerificationError = Literal["malformed", "invalid_signature", "expired"]


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(segment: str) -> bytes:
    padding = "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode((segment + padding).encode("ascii"))


def _epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class TokenVerification:
    claims: dict[str, Any] | None
    error: VerificationError | None = None

    @property
    def valid(self) -> bool:
        return self.error is None


class EntitlementTokenCodec:
    def __init__(self, key_provider: KeyProvider, *, clock: Clock = _utc_now) -> None:
        self._key_provider = key_provider
        self._clock = clock

    def _sign(self, claims_segment: str) -> str:
        digest = hmac.new(self._key_provider(), claims_segment.encode("ascii"), hashlib.sha256).digest()
        return _b64url_encode(digest)

    def issue(self, claims: dict[str, Any]) -> str:
        now = self._clock()
        full_claims = {
            **claims,
            "issued_at": _epoch_ms(now),
            "expires_at": _epoch_ms(now + TOKEN_VALIDITY),
        }
        raw = json.dumps(full_claims, ensure_ascii=False, separators=(",", ":"), default=str)
        claims_segment = _b64url_encode(raw.encode("utf-8"))
        return f"{claims_segment}{SEGMENT_SEPARATOR}{self._sign(claims_segment)}"

    def verify(self, token: str) -> TokenVerification:
        parts = token.split(SEGMENT_SEPARATOR)
        if len(parts) != 2 or not all(parts):
            return TokenVerification(claims=None, error="malformed")

        claims_segment, signature_segment = parts
        try:
            expected = self._sign(claims_segment)
        except UnicodeEncodeError:
            return TokenVerification(claims=None, error="malformed")

        # Compare the encoded forms so unused trailing base64 bits cannot be altered.
        if not hmac.compare_digest(expected.encode("ascii"), signature_segment.encode("utf-8")):
            return TokenVerification(claims=None, error="invalid_signature")

        try:
            claims = json.loads(_b64url_decode(claims_segment).decode("utf-8"))
        except (binascii.Error, ValueError):
            return TokenVerification(claims=None, error="malformed")
        if not isinstance(claims, dict) or not isinstance(claims.get("expires_at"), int):
            return TokenVerification(claims=None, error="malformed")

        if claims["expires_at"] < _epoch_ms(self._clock()):
            return TokenVerification(claims=None, error="expired")
        return TokenVerification(claims=claims)
