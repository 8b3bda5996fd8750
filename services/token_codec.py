"""
JWT signing and verification for access and refresh tokens (PyJWT, HS256).

Access and refresh tokens are signed with two distinct secrets and carry a
``token_type`` claim, so neither kind can be presented as the other.
Expiry is checked against the injected clock with zero leeway.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable

import jwt

from utils.security import generate_jti
from utils.timeutils import from_epoch, to_epoch, utcnow


TOKEN_TYPE_CLAIM = "token_type"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

_REQUIRED_CLAIMS = ["iss", "aud", "sub", "jti", "iat", "exp", TOKEN_TYPE_CLAIM]


class InvalidTokenError(Exception):
    """Raised for any token that fails verification."""


@dataclass(frozen=True)
class RefreshClaims:
    user_id: str
    token_id: str
    expires_at: datetime


class TokenCodec:
    def __init__(
        self,
        *,
        issuer: str,
        audience: str,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = utcnow,
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("Both access and refresh signing secrets must be provided.")
        if access_secret == refresh_secret:
            raise ValueError("The refresh token secret must differ from the access token secret.")
        self._issuer = issuer
        self._audience = audience
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._algorithm = algorithm
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def _base_claims(self, subject: str, jti: str, ttl: timedelta, now: datetime | None) -> Dict[str, Any]:
        issued = now or self._clock()
        return {
            "iss": self._issuer,
            "aud": self._audience,
            "sub": str(subject),
            "jti": jti,
            "iat": to_epoch(issued),
            "exp": to_epoch(issued + ttl),
        }

    def sign_access_token(
        self,
        user_id: str,
        user_name: str,
        email: str,
        roles: Iterable[str],
        ttl: timedelta,
        *,
        now: datetime | None = None,
    ) -> str:
        """Short-lived bearer credential: identity, a fresh jti and the user's roles."""
        payload = self._base_claims(user_id, generate_jti(), ttl, now)
        payload.update(
            {
                "name": user_name or "",
                "email": email or "",
                "roles": list(roles),
                TOKEN_TYPE_CLAIM: ACCESS_TOKEN_TYPE,
            }
        )
        return jwt.encode(payload, self._access_secret, algorithm=self._algorithm)

    def sign_refresh_token(
        self, user_id: str, token_id: str, ttl: timedelta, *, now: datetime | None = None
    ) -> str:
        """Refresh credential whose jti is the key of its persisted lineage record."""
        payload = self._base_claims(user_id, token_id, ttl, now)
        payload[TOKEN_TYPE_CLAIM] = REFRESH_TOKEN_TYPE
        return jwt.encode(payload, self._refresh_secret, algorithm=self._algorithm)

    def _decode(self, token: str, secret: str, expected_type: str, validate_expiry: bool) -> Dict[str, Any]:
        if not token or not isinstance(token, str):
            raise InvalidTokenError("Token missing")
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                # time-based claims are checked below against our own clock
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": _REQUIRED_CLAIMS,
                },
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError(f"Invalid token: {exc}") from exc

        if decoded.get(TOKEN_TYPE_CLAIM) != expected_type:
            raise InvalidTokenError("Wrong token type")

        try:
            expires_at = from_epoch(decoded["exp"])
        except (TypeError, ValueError, OverflowError) as exc:
            raise InvalidTokenError("Invalid token: malformed exp") from exc

        if validate_expiry and self._clock() >= expires_at:
            raise InvalidTokenError("Token expired")
        decoded["_expires_at"] = expires_at
        return decoded

    def verify_refresh_token(self, token: str, validate_expiry: bool = True) -> RefreshClaims:
        """
        Verify a refresh token and return its subject and jti.
        validate_expiry=False is only for revocation, so expired tokens can still be revoked.
        """
        decoded = self._decode(token, self._refresh_secret, REFRESH_TOKEN_TYPE, validate_expiry)
        return RefreshClaims(
            user_id=str(decoded["sub"]),
            token_id=str(decoded["jti"]),
            expires_at=decoded["_expires_at"],
        )

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        """Verify a bearer access token; expiry is always enforced."""
        decoded = self._decode(token, self._access_secret, ACCESS_TOKEN_TYPE, True)
        decoded.pop("_expires_at", None)
        return decoded
