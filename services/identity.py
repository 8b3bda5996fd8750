"""
Identity directory: users, their password hashes and their flat role strings.

The session core only depends on the IdentityDirectory protocol; the SQL
implementation below backs it with the ``users`` table.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.attributes import flag_modified

from models.db_storage import DBStorage
from models.user import User
from services.errors import ConflictError, InfrastructureError
from utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)

DEFAULT_ROLES = ("Admin", "Manager", "User")


class IdentityDirectory(Protocol):
    def find_user(self, user_id: str) -> Optional[User]: ...

    def roles_of(self, user: User) -> list[str]: ...

    def verify_credentials(self, user: User, password: str) -> bool: ...


def _norm_email(email: str) -> str:
    return email.strip().lower()


class SQLIdentityDirectory:
    def __init__(
        self,
        storage: DBStorage,
        *,
        default_role: str = "User",
        allowed_roles: Iterable[str] = DEFAULT_ROLES,
    ):
        self._storage = storage
        self.default_role = default_role
        self.allowed_roles = tuple(allowed_roles)
        if default_role not in self.allowed_roles:
            raise ValueError(f"default role {default_role!r} is not an allowed role")

    @property
    def _session(self):
        return self._storage.get_session()

    @contextmanager
    def _write(self, action: str) -> Iterator[None]:
        """
        Unit of work for directory writes. Joins an enclosing storage
        transaction, so callers can group a write with other mutations.
        """
        try:
            with self._storage.transaction():
                yield
                self._session.flush()
        except IntegrityError as exc:
            raise ConflictError("User with this email already exists.") from exc
        except SQLAlchemyError as exc:
            logger.exception("identity directory failure during %s", action)
            raise InfrastructureError() from exc

    def find_user(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        try:
            return self._storage.get(User, user_id)
        except SQLAlchemyError as exc:
            raise InfrastructureError() from exc

    def find_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        try:
            return self._session.scalars(
                select(User).where(User.email == _norm_email(email))
            ).first()
        except SQLAlchemyError as exc:
            raise InfrastructureError() from exc

    def roles_of(self, user: User) -> list[str]:
        return sorted(set(user.roles or []))

    def verify_credentials(self, user: User, password: str) -> bool:
        if user is None or not password:
            return False
        return verify_password(password, user.password_hash)

    def create_account(
        self,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        """Create a user holding the default role. Duplicate emails raise ConflictError."""
        email = _norm_email(email)
        if self.find_by_email(email) is not None:
            raise ConflictError("User with this email already exists.")

        user = User(
            email=email,
            password_hash=hash_password(password),
            f_name=first_name,
            l_name=last_name,
            roles=[self.default_role],
        )
        with self._write("create_account"):
            self._storage.new(user)
        logger.info("account created user_id=%s", user.id)
        return user

    def assign_role(self, user: User, role: str) -> User:
        if role not in self.allowed_roles:
            raise ValueError(f"Unknown role {role!r}. Allowed: {', '.join(self.allowed_roles)}")
        roles = list(user.roles or [])
        if role not in roles:
            roles.append(role)
            with self._write("assign_role"):
                user.roles = roles
                # JSON columns do not track in-place mutation
                flag_modified(user, "roles")
            logger.info("role %s assigned to user_id=%s", role, user.id)
        return user

    def update_profile(self, user: User, first_name: str | None, last_name: str | None) -> User:
        with self._write("update_profile"):
            user.f_name = first_name
            user.l_name = last_name
        return user

    def change_password(self, user: User, current_password: str, new_password: str) -> bool:
        if not self.verify_credentials(user, current_password):
            return False
        with self._write("change_password"):
            user.password_hash = hash_password(new_password)
        return True

    def delete_account(self, user: User) -> None:
        with self._write("delete_account"):
            self._storage.delete(user)
        logger.info("account deleted user_id=%s", user.id)
