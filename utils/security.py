"""
security helpers:
- Argon2 password hashing via argon2-cffi
- identifiers for token JTIs
"""
from __future__ import annotations

import uuid

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

ph = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID) for access tokens.
    """
    return str(uuid.uuid4())


def generate_token_id() -> str:
    """Generate the tokenId of a refresh token (32 hex chars, no dashes).
    """
    return uuid.uuid4().hex
