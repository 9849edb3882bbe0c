from datetime import UTC, datetime, timedelta

from fleetgate.services.entitlement_token import EntitlementTokenCodec

KEY = b"fixed-test-key"
ISSUED = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
CLAIMS = {
    "pickup_code": "XN-TEST-01-AAAA",
    "customer_name": "Test customer",
    "plan": "pro",
    "end_date": "2026-06-01",
    "grace_status": "normal",
}


def _codec(at: datetime, key: bytes = KEY) -> EntitlementTokenCodec:
    return EntitlementTokenCodec(lambda: key, clock=lambda: at)


def _flip(segment: str, index: int) -> str:
    replacement = "A" if segment[index] != "A" else "B"
    return segment[:index] + replacement + segment[index + 1 :]


def test_issue_then_verify_returns_claims_with_stamps():
    token = _codec(ISSUED).issue(CLAIMS)

    result = _codec(ISSUED + timedelta(days=3)).verify(token)

    assert result.valid
    assert result.error is None
    issued_ms = int(ISSUED.timestamp() * 1000)
    assert result.claims == {
        **CLAIMS,
        "issued_at": issued_ms,
        "expires_at": issued_ms + 7 * 24 * 3600 * 1000,
    }


def test_issue_overrides_caller_supplied_stamps():
    token = _codec(ISSUED).issue({**CLAIMS, "issued_at": 1, "expires_at": 2**52})
    claims = _codec(ISSUED).verify(token).claims
    assert claims["issued_at"] == int(ISSUED.timestamp() * 1000)
    assert claims["expires_at"] == int((ISSUED + timedelta(days=7)).timestamp() * 1000)


def test_token_has_two_segments():
    token = _codec(ISSUED).issue(CLAIMS)
    assert token.count(".") == 1


def test_flipped_claims_segment_is_invalid_signature():
    token = _codec(ISSUED).issue(CLAIMS)
    claims_segment, signature = token.split(".")

    tampered = f"{_flip(claims_segment, 10)}.{signature}"

    result = _codec(ISSUED).verify(tampered)
    assert result.error == "invalid_signature"
    assert result.claims is None


def test_flipped_signature_segment_is_invalid_signature():
    token = _codec(ISSUED).issue(CLAIMS)
    claims_segment, signature = token.split(".")

    for index in (0, len(signature) - 1):
        result = _codec(ISSUED).verify(f"{claims_segment}.{_flip(signature, index)}")
        assert result.error == "invalid_signature"


def test_other_key_is_invalid_signature():
    token = _codec(ISSUED).issue(CLAIMS)
    assert _codec(ISSUED, key=b"another-key").verify(token).error == "invalid_signature"


def test_token_expires_after_seven_days():
    token = _codec(ISSUED).issue(CLAIMS)

    assert _codec(ISSUED + timedelta(days=7)).verify(token).valid
    result = _codec(ISSUED + timedelta(days=7, seconds=1)).verify(token)
    assert result.error == "expired"
    assert result.claims is None


def test_malformed_tokens():
    codec = _codec(ISSUED)
    token = codec.issue(CLAIMS)
    for candidate in ("", "abc", "a.b.c", f"{token}.extra", ".sig", "claims."):
        assert codec.verify(candidate).error == "malformed"


def test_rotated_key_invalidates_old_tokens():
    keys = {"current": b"key-one"}
    codec = EntitlementTokenCodec(lambda: keys["current"], clock=lambda: ISSUED)
    token = codec.issue(CLAIMS)
    assert codec.verify(token).valid

    keys["current"] = b"key-two"
    assert codec.verify(token).error == "invalid_signature"
