"""
Refresh token rotation (revoke-on-use) and explicit revocation.

rotate():  Presented -> Verified -> Looked-up -> Rejected | Rotated
revoke():  best effort, never tells the caller whether the token was any good
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from models.refresh_token import TokenStatus
from services.errors import UnauthorizedError
from services.identity import IdentityDirectory
from services.refresh_store import RefreshTokenStore
from services.session_issuer import SessionIssuer, TokenPair
from services.token_codec import InvalidTokenError, TokenCodec

logger = logging.getLogger(__name__)

INVALID_REFRESH_TOKEN = "invalid refresh token"
REVOKED_OR_EXPIRED = "refresh token has been revoked or expired"
USER_NOT_FOUND = "user not found"


class RotationEngine:
    def __init__(
        self,
        *,
        codec: TokenCodec,
        store: RefreshTokenStore,
        issuer: SessionIssuer,
        directory: IdentityDirectory,
        clock: Callable[[], datetime] | None = None,
    ):
        self._codec = codec
        self._store = store
        self._issuer = issuer
        self._directory = directory
        self._clock = clock or codec.now

    def rotate(self, refresh_token: str) -> TokenPair:
        try:
            claims = self._codec.verify_refresh_token(refresh_token, validate_expiry=True)
        except InvalidTokenError as exc:
            logger.info("refresh rejected: %s", exc)
            raise UnauthorizedError(INVALID_REFRESH_TOKEN) from exc

        record = self._store.find_by_token_id(claims.token_id)
        if record is None or record.user_id != claims.user_id:
            logger.warning("refresh rejected: no lineage record for jti=%s", claims.token_id)
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        now = self._clock()
        status = record.status_at(now)
        if status is not TokenStatus.ACTIVE:
            if status is TokenStatus.REVOKED:
                logger.warning(
                    "refresh token replay user_id=%s jti=%s replaced_by=%s",
                    record.user_id, record.jti, record.replaced_by_jti,
                )
            raise UnauthorizedError(REVOKED_OR_EXPIRED)

        user = self._directory.find_user(claims.user_id)
        if user is None:
            raise UnauthorizedError(USER_NOT_FOUND)

        # revoke, mint and link commit together or not at all
        with self._store.transaction():
            if not self._store.mark_revoked(record, now):
                logger.warning("refresh token lost rotation race jti=%s", record.jti)
                raise UnauthorizedError(REVOKED_OR_EXPIRED)
            pair = self._issuer.issue(user)
            self._store.set_replacement(record, pair.refresh_token_id)

        logger.info(
            "rotated refresh token user_id=%s jti=%s -> %s",
            user.id, record.jti, pair.refresh_token_id,
        )
        return pair

    def revoke(self, refresh_token: str) -> None:
        try:
            claims = self._codec.verify_refresh_token(refresh_token, validate_expiry=False)
        except InvalidTokenError:
            return

        record = self._store.find_by_token_id(claims.token_id)
        if record is None or record.user_id != claims.user_id:
            return
        now = self._clock()
        if not record.is_active(now):
            return

        with self._store.transaction():
            revoked = self._store.mark_revoked(record, now)
        if revoked:
            logger.info("revoked refresh token user_id=%s jti=%s", record.user_id, record.jti)
