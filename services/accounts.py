"""
Account operations that end in a fresh session: register, login, profile and
password changes. Account deletion revokes every outstanding refresh token.
"""
from __future__ import annotations

import logging

from models.user import User
from services.errors import UnauthorizedError
from services.identity import SQLIdentityDirectory
from services.refresh_store import RefreshTokenStore
from services.session_issuer import SessionIssuer, TokenPair

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."


class AccountService:
    def __init__(self, *, directory: SQLIdentityDirectory, issuer: SessionIssuer, store: RefreshTokenStore, clock):
        self._directory = directory
        self._issuer = issuer
        self._store = store
        self._clock = clock

    def _require_user(self, user_id: str) -> User:
        user = self._directory.find_user(user_id)
        if user is None:
            raise UnauthorizedError("User not found")
        return user

    def register(self, email: str, password: str, first_name: str | None = None, last_name: str | None = None) -> TokenPair:
        # the account and its first lineage record commit together
        with self._store.transaction():
            user = self._directory.create_account(email, password, first_name, last_name)
            return self._issuer.issue(user)

    def login(self, email: str, password: str) -> TokenPair:
        user = self._directory.find_by_email(email)
        if user is None or not self._directory.verify_credentials(user, password):
            logger.info("login failed")
            raise UnauthorizedError(INVALID_CREDENTIALS)
        return self._issuer.issue(user)

    def edit_profile(self, user_id: str, first_name: str | None, last_name: str | None) -> TokenPair:
        user = self._require_user(user_id)
        self._directory.update_profile(user, first_name, last_name)
        return self._issuer.issue(user)

    def update_password(self, user_id: str, current_password: str, new_password: str) -> TokenPair:
        user = self._require_user(user_id)
        if not self._directory.change_password(user, current_password, new_password):
            raise UnauthorizedError("Invalid password")
        logger.info("password changed user_id=%s", user.id)
        return self._issuer.issue(user)

    def delete_account(self, user_id: str, password: str) -> None:
        user = self._require_user(user_id)
        if not self._directory.verify_credentials(user, password):
            raise UnauthorizedError("Invalid password")
        with self._store.transaction():
            revoked = self._store.revoke_all_for_user(user.id, self._clock())
            self._directory.delete_account(user)
        logger.info("revoked %d refresh tokens and deleted user_id=%s", revoked, user.id)
