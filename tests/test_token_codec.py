from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from services.token_codec import InvalidTokenError, TokenCodec
from utils.timeutils import to_epoch

from conftest import FrozenClock, TEST_CONFIG

REFRESH_TTL = timedelta(days=7)
ACCESS_TTL = timedelta(minutes=15)


def make_codec(clock, **overrides) -> TokenCodec:
    params = dict(
        issuer=TEST_CONFIG["JWT_ISSUER"],
        audience=TEST_CONFIG["JWT_AUDIENCE"],
        access_secret=TEST_CONFIG["JWT_SECRET"],
        refresh_secret=TEST_CONFIG["JWT_REFRESH_SECRET"],
        clock=clock,
    )
    params.update(overrides)
    return TokenCodec(**params)


@pytest.fixture
def codec(clock) -> TokenCodec:
    return make_codec(clock)


def test_refresh_token_roundtrip_returns_subject_and_token_id(codec: TokenCodec, clock: FrozenClock) -> None:
    token = codec.sign_refresh_token("user-1", "abc123", REFRESH_TTL)

    claims = codec.verify_refresh_token(token)

    assert claims.user_id == "user-1"
    assert claims.token_id == "abc123"
    assert claims.expires_at == clock() + REFRESH_TTL


def test_access_token_carries_identity_roles_and_fresh_jti(codec: TokenCodec, clock: FrozenClock) -> None:
    first = codec.sign_access_token("user-1", "alice@example.com", "alice@example.com", ["Admin", "User"], ACCESS_TTL)
    second = codec.sign_access_token("user-1", "alice@example.com", "alice@example.com", ["User"], ACCESS_TTL)

    claims = codec.verify_access_token(first)

    assert claims["sub"] == "user-1"
    assert claims["name"] == "alice@example.com"
    assert claims["email"] == "alice@example.com"
    assert claims["roles"] == ["Admin", "User"]
    assert claims["token_type"] == "access"
    assert claims["iss"] == TEST_CONFIG["JWT_ISSUER"]
    assert claims["aud"] == TEST_CONFIG["JWT_AUDIENCE"]
    assert claims["exp"] == to_epoch(clock() + ACCESS_TTL)
    assert claims["jti"] != codec.verify_access_token(second)["jti"]


def test_access_token_is_not_accepted_as_refresh_token(codec: TokenCodec) -> None:
    access = codec.sign_access_token("user-1", "a", "a@example.com", [], ACCESS_TTL)

    with pytest.raises(InvalidTokenError):
        codec.verify_refresh_token(access)


def test_refresh_token_is_not_accepted_as_access_token(codec: TokenCodec) -> None:
    refresh = codec.sign_refresh_token("user-1", "abc123", REFRESH_TTL)

    with pytest.raises(InvalidTokenError):
        codec.verify_access_token(refresh)


def test_well_signed_token_with_wrong_discriminator_is_rejected(codec: TokenCodec, clock: FrozenClock) -> None:
    payload = {
        "iss": TEST_CONFIG["JWT_ISSUER"],
        "aud": TEST_CONFIG["JWT_AUDIENCE"],
        "sub": "user-1",
        "jti": "abc123",
        "iat": to_epoch(clock()),
        "exp": to_epoch(clock() + REFRESH_TTL),
        "token_type": "access",
    }
    forged = jwt.encode(payload, TEST_CONFIG["JWT_REFRESH_SECRET"], algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        codec.verify_refresh_token(forged)

    del payload["token_type"]
    untyped = jwt.encode(payload, TEST_CONFIG["JWT_REFRESH_SECRET"], algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        codec.verify_refresh_token(untyped)


def test_token_signed_with_another_secret_is_rejected(codec: TokenCodec, clock: FrozenClock) -> None:
    tampered = make_codec(clock, refresh_secret="some-other-refresh-secret-0123456789")
    token = tampered.sign_refresh_token("user-1", "abc123", REFRESH_TTL)

    with pytest.raises(InvalidTokenError):
        codec.verify_refresh_token(token)
    with pytest.raises(InvalidTokenError):
        codec.verify_refresh_token(token, validate_expiry=False)


@pytest.mark.parametrize(
    "overrides",
    [
        {"issuer": "someone-else"},
        {"audience": "other-clients"},
    ],
)
def test_issuer_and_audience_must_match(codec: TokenCodec, clock: FrozenClock, overrides: dict) -> None:
    token = make_codec(clock, **overrides).sign_refresh_token("user-1", "abc123", REFRESH_TTL)

    with pytest.raises(InvalidTokenError):
        codec.verify_refresh_token(token)


def test_expiry_boundary_is_exact(codec: TokenCodec, clock: FrozenClock) -> None:
    token = codec.sign_refresh_token("user-1", "abc123", REFRESH_TTL)

    clock.advance(days=7, seconds=-1)
    assert codec.verify_refresh_token(token).token_id == "abc123"

    clock.advance(seconds=1)
    with pytest.raises(InvalidTokenError):
        codec.verify_refresh_token(token)

    # revocation path still reads expired tokens
    assert codec.verify_refresh_token(token, validate_expiry=False).token_id == "abc123"


def test_garbage_is_rejected(codec: TokenCodec) -> None:
    for value in ("", "not-a-jwt", "a.b.c", None):
        with pytest.raises(InvalidTokenError):
            codec.verify_refresh_token(value)


def test_access_and_refresh_secrets_must_differ(clock: FrozenClock) -> None:
    with pytest.raises(ValueError):
        make_codec(clock, refresh_secret=TEST_CONFIG["JWT_SECRET"])
    with pytest.raises(ValueError):
        make_codec(clock, access_secret="")
