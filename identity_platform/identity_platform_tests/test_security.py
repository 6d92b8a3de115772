"""Tests for password hashing and session tokens."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from identity_platform.identity_platform.identity_service.auth import (
    burn_password_check,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_hash_password_uses_bcrypt_work_factor_10():
    hashed = hash_password("secret1")
    assert hashed.startswith("$2b$10$")
    assert hashed != "secret1"
    # Salted: the same password hashes differently each time
    assert hash_password("secret1") != hashed


def test_verify_password():
    hashed = hash_password("secret1", rounds=4)
    assert verify_password("secret1", hashed) is True
    assert verify_password("secret2", hashed) is False


@pytest.mark.parametrize("stored", [None, "", "not-a-bcrypt-hash"])
def test_verify_password_without_usable_hash(stored):
    assert verify_password("secret1", stored) is False


def test_burn_password_check_never_raises():
    burn_password_check("secret1", rounds=4)
    burn_password_check("", rounds=4)


def test_token_carries_identifier_and_expires_in_one_hour():
    before = datetime.now(timezone.utc)
    token = create_access_token("user-identifier", "shared-secret")
    claims = decode_access_token(token, "shared-secret")

    assert claims["sub"] == "user-identifier"
    expires = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
    assert before + timedelta(minutes=59) <= expires <= before + timedelta(minutes=61)


def test_token_rejected_with_wrong_secret():
    token = create_access_token("user-identifier", "shared-secret")
    with pytest.raises(jwt.InvalidSignatureError):
        decode_access_token(token, "other-secret")


def test_expired_token_rejected():
    token = create_access_token("user-identifier", "shared-secret", expires_minutes=-1)
    with pytest.raises(jwt.ExpiredSignatureError):
        decode_access_token(token, "shared-secret")
