"""
Service graph for the auth session core.

build_session_services() wires codec, store, directory, issuer, rotation
engine and account service from a config mapping (Flask's app.config or a
plain dict) and a DBStorage.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping

from models.db_storage import DBStorage
from services.accounts import AccountService
from services.identity import SQLIdentityDirectory
from services.refresh_store import RefreshTokenStore
from services.rotation import RotationEngine
from services.session_issuer import SessionIssuer, TokenPair
from services.token_codec import TokenCodec
from utils.timeutils import utcnow


@dataclass(frozen=True)
class SessionServices:
    storage: DBStorage
    codec: TokenCodec
    store: RefreshTokenStore
    directory: SQLIdentityDirectory
    issuer: SessionIssuer
    rotation: RotationEngine
    accounts: AccountService


def build_session_services(
    config: Mapping[str, Any],
    storage: DBStorage,
    clock: Callable[[], datetime] = utcnow,
) -> SessionServices:
    codec = TokenCodec(
        issuer=config["JWT_ISSUER"],
        audience=config["JWT_AUDIENCE"],
        access_secret=config["JWT_SECRET"],
        refresh_secret=config["JWT_REFRESH_SECRET"],
        algorithm=config.get("JWT_ALGORITHM", "HS256"),
        clock=clock,
    )
    store = RefreshTokenStore(storage)
    directory = SQLIdentityDirectory(
        storage,
        default_role=config.get("DEFAULT_ROLE", "User"),
        allowed_roles=config.get("ALLOWED_ROLES", ("Admin", "Manager", "User")),
    )
    issuer = SessionIssuer(
        codec=codec,
        store=store,
        directory=directory,
        access_ttl=timedelta(minutes=int(config["JWT_EXPIRATION_MINUTES"])),
        refresh_ttl=timedelta(days=int(config["REFRESH_TOKEN_EXPIRATION_DAYS"])),
        clock=clock,
    )
    rotation = RotationEngine(codec=codec, store=store, issuer=issuer, directory=directory, clock=clock)
    accounts = AccountService(directory=directory, issuer=issuer, store=store, clock=clock)
    return SessionServices(
        storage=storage,
        codec=codec,
        store=store,
        directory=directory,
        issuer=issuer,
        rotation=rotation,
        accounts=accounts,
    )


__all__ = ["SessionServices", "TokenPair", "build_session_services"]
