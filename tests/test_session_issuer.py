from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from models.refresh_token import TokenStatus
from services.session_issuer import SessionIssuer

from conftest import TEST_CONFIG, USER_EMAIL


def test_issue_returns_pair_and_persists_matching_record(services, user, clock, storage) -> None:
    pair = services.issuer.issue(user)

    claims = services.codec.verify_refresh_token(pair.refresh_token)
    assert claims.user_id == user.id
    assert claims.token_id == pair.refresh_token_id

    storage.close()
    record = services.store.find_by_token_id(pair.refresh_token_id)
    assert record is not None
    assert record.user_id == user.id
    assert record.issued_at == clock()
    assert record.expires_at == claims.expires_at == pair.refresh_expires_at
    assert record.status_at(clock()) is TokenStatus.ACTIVE
    assert record.replaced_by_jti is None


def test_access_and_refresh_tokens_are_distinct(services, user, clock) -> None:
    pair = services.issuer.issue(user)

    access = services.codec.verify_access_token(pair.access_token)
    assert access["jti"] != pair.refresh_token_id
    assert access["roles"] == ["User"]
    assert access["email"] == USER_EMAIL
    assert pair.access_expires_at == clock() + timedelta(minutes=TEST_CONFIG["JWT_EXPIRATION_MINUTES"])
    assert pair.refresh_expires_at == clock() + timedelta(days=TEST_CONFIG["REFRESH_TOKEN_EXPIRATION_DAYS"])

    # each kind is signed with its own key
    with pytest.raises(jwt.InvalidSignatureError):
        jwt.decode(
            pair.refresh_token,
            TEST_CONFIG["JWT_SECRET"],
            algorithms=["HS256"],
            audience=TEST_CONFIG["JWT_AUDIENCE"],
        )


def test_every_issue_creates_a_new_record(services, user) -> None:
    first = services.issuer.issue(user)
    second = services.issuer.issue(user)

    assert first.refresh_token_id != second.refresh_token_id
    assert len(services.store.list_for_user(user.id)) == 2


def test_roles_come_from_the_directory(services, user) -> None:
    services.directory.assign_role(user, "Manager")

    pair = services.issuer.issue(user)

    assert pair.roles == ["Manager", "User"]
    assert services.codec.verify_access_token(pair.access_token)["roles"] == ["Manager", "User"]


def test_refresh_lifetime_must_exceed_access_lifetime(services) -> None:
    with pytest.raises(ValueError):
        SessionIssuer(
            codec=services.codec,
            store=services.store,
            directory=services.directory,
            access_ttl=timedelta(days=1),
            refresh_ttl=timedelta(hours=1),
        )
