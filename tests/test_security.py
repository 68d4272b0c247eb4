"""Tests for password hashing and token handling."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import jwt

from gametracker.core.security import TokenService, get_password_hash, verify_password


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(access_secret="access-secret", refresh_secret="refresh-secret")


def test_password_hash_round_trip() -> None:
    """Test hashing and verifying a password."""
    hashed = get_password_hash("hunter22")
    assert hashed != "hunter22"
    assert hashed.startswith("$2b$12$")
    assert verify_password("hunter22", hashed)
    assert not verify_password("wrong-password", hashed)


def test_verify_password_rejects_malformed_hash() -> None:
    assert verify_password("hunter22", "not-a-bcrypt-hash") is False


def test_distinct_secrets_required() -> None:
    with pytest.raises(ValueError):
        TokenService(access_secret="same", refresh_secret="same")


def test_access_token_claims(token_service: TokenService) -> None:
    """Test access token carries identity, issuer, audience and type."""
    account_id = uuid4()
    token = token_service.create_access_token(account_id, "player@example.com")

    claims = jwt.get_unverified_claims(token)
    assert claims["sub"] == str(account_id)
    assert claims["email"] == "player@example.com"
    assert claims["iss"] == "gametracker-api"
    assert claims["aud"] == "gametracker-client"
    assert claims["type"] == "access"
    assert claims["exp"] - claims["iat"] == int(timedelta(days=7).total_seconds())

    payload = token_service.verify_access_token(token)
    assert payload is not None
    assert payload.account_id == account_id
    assert payload.email == "player@example.com"


def test_tokens_issued_together_are_unique(token_service: TokenService) -> None:
    account_id = uuid4()
    first = token_service.create_refresh_token(account_id)
    second = token_service.create_refresh_token(account_id)
    assert first != second


def test_refresh_token_not_accepted_as_access(token_service: TokenService) -> None:
    """Test the two token kinds are not interchangeable."""
    account_id = uuid4()
    refresh = token_service.create_refresh_token(account_id)
    access = token_service.create_access_token(account_id, "player@example.com")

    assert token_service.verify_access_token(refresh) is None
    assert token_service.verify_refresh_token(access) is None
    assert token_service.verify_refresh_token(refresh).account_id == account_id


def test_expired_token_rejected(token_service: TokenService) -> None:
    token = token_service.create_access_token(uuid4(), "player@example.com", expires_delta=timedelta(seconds=-5))
    assert token_service.verify_access_token(token) is None


def test_wrong_audience_rejected(token_service: TokenService) -> None:
    other = TokenService(
        access_secret="access-secret",
        refresh_secret="refresh-secret",
        audience="someone-else",
    )
    token = other.create_access_token(uuid4(), "player@example.com")
    assert token_service.verify_access_token(token) is None


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_rejected(token_service: TokenService, token: str) -> None:
    assert token_service.verify_access_token(token) is None
    assert token_service.verify_refresh_token(token) is None
