"""
Mint an access/refresh token pair for a user and persist the refresh lineage record.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List

from models.refresh_token import RefreshToken
from models.user import User
from services.identity import IdentityDirectory
from services.refresh_store import RefreshTokenStore
from services.token_codec import TokenCodec
from utils.security import generate_token_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    access_expires_at: datetime
    refresh_token: str
    refresh_expires_at: datetime
    refresh_token_id: str
    email: str
    roles: List[str] = field(default_factory=list)


class SessionIssuer:
    def __init__(
        self,
        *,
        codec: TokenCodec,
        store: RefreshTokenStore,
        directory: IdentityDirectory,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        clock: Callable[[], datetime] | None = None,
    ):
        if refresh_ttl <= access_ttl:
            raise ValueError("refresh token lifetime must be longer than the access token lifetime")
        self._codec = codec
        self._store = store
        self._directory = directory
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._clock = clock or codec.now

    def issue(self, user: User) -> TokenPair:
        """
        Build and sign both tokens, then persist the refresh record.
        Joins the caller's transaction when one is open (rotation), commits otherwise.
        """
        roles = self._directory.roles_of(user)
        token_id = generate_token_id()
        now = self._clock()
        access_expires_at = now + self.access_ttl
        refresh_expires_at = now + self.refresh_ttl

        access_token = self._codec.sign_access_token(
            user.id, user.user_name, user.email, roles, self.access_ttl, now=now
        )
        refresh_token = self._codec.sign_refresh_token(user.id, token_id, self.refresh_ttl, now=now)

        self._store.insert(
            RefreshToken(
                jti=token_id,
                user_id=user.id,
                issued_at=now,
                expires_at=refresh_expires_at,
                revoked_at=None,
                replaced_by_jti=None,
            )
        )
        logger.info("issued session user_id=%s jti=%s", user.id, token_id)

        return TokenPair(
            access_token=access_token,
            access_expires_at=access_expires_at,
            refresh_token=refresh_token,
            refresh_expires_at=refresh_expires_at,
            refresh_token_id=token_id,
            email=user.email,
            roles=list(roles),
        )
