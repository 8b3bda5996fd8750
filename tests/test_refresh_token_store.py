from __future__ import annotations

from datetime import timedelta

import pytest

from models.db_storage import DBStorage
from models.refresh_token import RefreshToken, TokenStatus
from services.errors import InfrastructureError
from services.refresh_store import RefreshTokenStore


def make_record(clock, jti: str, user_id: str = "user-1", days: int = 7) -> RefreshToken:
    now = clock()
    return RefreshToken(jti=jti, user_id=user_id, issued_at=now, expires_at=now + timedelta(days=days))


@pytest.fixture
def store(storage) -> RefreshTokenStore:
    return RefreshTokenStore(storage)


def reload_record(storage: DBStorage, store: RefreshTokenStore, jti: str):
    # drop the identity map so we read what was committed
    storage.close()
    return store.find_by_token_id(jti)


def test_insert_and_find(store, storage, clock) -> None:
    store.insert(make_record(clock, "t1"))

    found = reload_record(storage, store, "t1")
    assert found is not None
    assert found.user_id == "user-1"
    assert found.revoked_at is None
    assert found.replaced_by_jti is None
    assert store.find_by_token_id("missing") is None


def test_status_is_derived_from_revocation_and_expiry(clock) -> None:
    record = make_record(clock, "t1")

    assert record.status_at(clock()) is TokenStatus.ACTIVE
    assert record.status_at(record.expires_at) is TokenStatus.EXPIRED

    record.revoked_at = clock()
    assert record.status_at(clock()) is TokenStatus.REVOKED
    assert record.status_at(record.expires_at) is TokenStatus.REVOKED


def test_mark_revoked_only_succeeds_once(store, storage, clock) -> None:
    record = make_record(clock, "t1")
    store.insert(record)
    first_at = clock()

    assert store.mark_revoked(record, first_at) is True
    assert store.mark_revoked(record, clock.advance(minutes=5)) is False

    found = reload_record(storage, store, "t1")
    assert found.revoked_at == first_at


def test_mark_revoked_loses_against_a_concurrent_writer(store, storage, db_url, clock) -> None:
    store.insert(make_record(clock, "t1"))

    other_storage = DBStorage(db_url)
    other_storage.reload()
    other_store = RefreshTokenStore(other_storage)
    try:
        mine = store.find_by_token_id("t1")
        theirs = other_store.find_by_token_id("t1")
        assert mine.revoked_at is None and theirs.revoked_at is None

        assert other_store.mark_revoked(theirs, clock()) is True
        # our copy still looks active, the database says otherwise
        assert mine.revoked_at is None
        assert store.mark_revoked(mine, clock()) is False
    finally:
        other_storage.dispose()


def test_set_replacement_requires_a_revoked_unlinked_record(store, storage, clock) -> None:
    record = make_record(clock, "t1")
    store.insert(record)

    with pytest.raises(ValueError):
        store.set_replacement(record, "t2")

    store.mark_revoked(record, clock())
    store.set_replacement(record, "t2")
    with pytest.raises(ValueError):
        store.set_replacement(record, "t3")

    assert reload_record(storage, store, "t1").replaced_by_jti == "t2"


def test_transaction_rolls_back_every_mutation(store, storage, clock) -> None:
    record = make_record(clock, "t1")
    store.insert(record)

    with pytest.raises(RuntimeError):
        with store.transaction():
            store.mark_revoked(record, clock())
            store.insert(make_record(clock, "t2"))
            store.set_replacement(record, "t2")
            raise RuntimeError("boom")

    found = reload_record(storage, store, "t1")
    assert found.revoked_at is None
    assert found.replaced_by_jti is None
    assert store.find_by_token_id("t2") is None


def test_duplicate_token_id_is_an_infrastructure_failure(store, clock) -> None:
    store.insert(make_record(clock, "t1"))

    with pytest.raises(InfrastructureError):
        store.insert(make_record(clock, "t1"))


def test_revoke_all_for_user(store, storage, clock) -> None:
    for jti in ("a", "b", "c"):
        store.insert(make_record(clock, jti))
    store.insert(make_record(clock, "other", user_id="user-2"))
    store.mark_revoked(store.find_by_token_id("a"), clock())

    assert store.revoke_all_for_user("user-1", clock()) == 2

    storage.close()
    statuses = {r.jti: r.status_at(clock()) for r in store.list_for_user("user-1")}
    assert statuses == {"a": TokenStatus.REVOKED, "b": TokenStatus.REVOKED, "c": TokenStatus.REVOKED}
    assert store.find_by_token_id("other").revoked_at is None


def test_purge_removes_only_revoked_records_expired_before_cutoff(store, storage, clock) -> None:
    store.insert(make_record(clock, "revoked-old", days=1))
    store.insert(make_record(clock, "active-old", days=1))
    store.insert(make_record(clock, "revoked-fresh", days=30))
    store.mark_revoked(store.find_by_token_id("revoked-old"), clock())
    store.mark_revoked(store.find_by_token_id("revoked-fresh"), clock())

    removed = store.purge(clock() + timedelta(days=2))

    assert removed == 1
    storage.close()
    assert store.find_by_token_id("revoked-old") is None
    assert store.find_by_token_id("active-old") is not None
    assert store.find_by_token_id("revoked-fresh") is not None
