"""Tests for password hashing and token helpers."""

from datetime import timedelta

import pytest

from convops.core.exceptions import AuthenticationFailed
from convops.core.security import (
    create_access_token,
    decode_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_rejects_missing_or_malformed_hash():
    assert not verify_password("secret123", None)
    assert not verify_password("secret123", "not-a-hash")


def test_access_token_carries_user_id():
    assert decode_access_token(create_access_token("user-1")) == "user-1"


def test_expired_token_rejected():
    token = create_access_token("user-1", expires_delta=timedelta(seconds=-1))
    with pytest.raises(AuthenticationFailed) as exc:
        decode_access_token(token)
    assert exc.value.message == "Token has expired."


def test_garbage_token_rejected():
    with pytest.raises(AuthenticationFailed):
        decode_access_token("not.a.token")


def test_reset_token_stored_as_digest():
    token, digest = generate_reset_token()
    assert token != digest
    assert hash_reset_token(token) == digest
