import jwt
import pytest

from fleetgate.core.config import get_settings
from fleetgate.core.security import create_access_token, decode_access_token, hash_password, verify_password


def test_password_hash_verifies_only_the_right_password(database):
    password_hash = hash_password("s3cret")

    assert password_hash.startswith("pbkdf2_sha256$")
    assert verify_password("s3cret", password_hash)
    assert not verify_password("wrong", password_hash)


@pytest.mark.parametrize("stored", ["", "plain", "md5$1$a$b", "pbkdf2_sha256$many$AAAA$AAAA", "pbkdf2_sha256$10$***$***"])
def test_malformed_password_hash_never_verifies(database, stored):
    assert verify_password("s3cret", stored) is False


def test_operator_token_round_trip(database):
    token = create_access_token("admin-1", role="viewer")
    claims = decode_access_token(token)

    assert claims["sub"] == "admin-1"
    assert claims["role"] == "viewer"


def test_foreign_jwt_is_not_an_operator_token(database):
    settings = get_settings()
    foreign = jwt.encode({"sub": "admin-1", "exp": 4102444800}, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    with pytest.raises(jwt.InvalidTokenError):
        decode_access_token(foreign)
