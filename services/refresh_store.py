"""
Persistence of refresh-token lineage records.

Mutations that guard rotation (revoke, link) are conditional UPDATEs, so two
requests racing on the same record cannot both transition it: the database
decides the winner and the loser sees rowcount 0.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.attributes import set_committed_value

from models.db_storage import DBStorage
from models.refresh_token import RefreshToken
from services.errors import InfrastructureError

logger = logging.getLogger(__name__)


class RefreshTokenStore:
    def __init__(self, storage: DBStorage):
        self._storage = storage

    @property
    def _session(self):
        return self._storage.get_session()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """All store mutations inside the block commit or roll back together."""
        try:
            with self._storage.transaction():
                yield
        except SQLAlchemyError as exc:
            logger.exception("refresh token store failure")
            raise InfrastructureError() from exc

    def insert(self, record: RefreshToken) -> None:
        with self.transaction():
            self._session.add(record)
            self._session.flush()

    def find_by_token_id(self, token_id: str) -> Optional[RefreshToken]:
        try:
            return self._session.get(RefreshToken, token_id)
        except SQLAlchemyError as exc:
            logger.exception("refresh token lookup failed")
            raise InfrastructureError() from exc

    def mark_revoked(self, record: RefreshToken, at: datetime) -> bool:
        """
        Revoke the record if nobody revoked it first.
        Returns False when the row was already revoked at write time.
        """
        with self.transaction():
            result = self._session.execute(
                update(RefreshToken)
                .where(RefreshToken.jti == record.jti, RefreshToken.revoked_at.is_(None))
                .values(revoked_at=at)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return False
            set_committed_value(record, "revoked_at", at)
            return True

    def set_replacement(self, record: RefreshToken, new_token_id: str) -> None:
        """Link a revoked record to the record that replaced it. Linking happens once."""
        with self.transaction():
            result = self._session.execute(
                update(RefreshToken)
                .where(
                    RefreshToken.jti == record.jti,
                    RefreshToken.revoked_at.is_not(None),
                    RefreshToken.replaced_by_jti.is_(None),
                )
                .values(replaced_by_jti=new_token_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ValueError(f"refresh token {record.jti} is not revoked or already replaced")
            set_committed_value(record, "replaced_by_jti", new_token_id)

    def revoke_all_for_user(self, user_id: str, at: datetime) -> int:
        with self.transaction():
            result = self._session.execute(
                update(RefreshToken)
                .where(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
                .values(revoked_at=at)
                .execution_options(synchronize_session=False)
            )
            # rows already in the identity map must not keep serving stale state
            self._session.expire_all()
            return result.rowcount

    def list_for_user(self, user_id: str) -> list[RefreshToken]:
        try:
            stmt = (
                select(RefreshToken)
                .where(RefreshToken.user_id == user_id)
                .order_by(RefreshToken.issued_at.asc())
            )
            return list(self._session.scalars(stmt))
        except SQLAlchemyError as exc:
            logger.exception("refresh token listing failed")
            raise InfrastructureError() from exc

    def purge(self, before: datetime) -> int:
        """Delete records that are both revoked and expired before the cutoff."""
        with self.transaction():
            result = self._session.execute(
                delete(RefreshToken)
                .where(RefreshToken.revoked_at.is_not(None), RefreshToken.expires_at < before)
                .execution_options(synchronize_session=False)
            )
            self._session.expire_all()
            return result.rowcount
