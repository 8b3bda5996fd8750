"""
RefreshToken model: one row per issued refresh token, keyed by its JTI.
Fields:
- jti (primary key) - the tokenId claim of the signed refresh token
- user_id (String(36)) - owning user; not a FK, lineage outlives accounts
- issued_at, expires_at - expires_at matches the token's exp claim
- revoked_at - set once when the token is rotated or revoked
- replaced_by_jti - the token minted by the rotation that consumed this one
"""
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Column, String, DateTime

from models.base_model import Base


class TokenStatus(str, enum.Enum):
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    jti = Column(String(64), primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)
    issued_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)
    replaced_by_jti = Column(String(64), nullable=True)

    def status_at(self, now: datetime) -> TokenStatus:
        if self.revoked_at is not None:
            return TokenStatus.REVOKED
        if now >= self.expires_at:
            return TokenStatus.EXPIRED
        return TokenStatus.ACTIVE

    def is_active(self, now: datetime) -> bool:
        return self.status_at(now) is TokenStatus.ACTIVE

    def __repr__(self):
        return f"<RefreshToken jti={self.jti} user={self.user_id} revoked={self.revoked_at is not None}>"
