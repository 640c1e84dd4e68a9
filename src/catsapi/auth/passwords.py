# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import HashingError as Argon2HashingError
from argon2.exceptions import InvalidHashError, VerificationError

from catsapi.errors import HashingError

_PH = PasswordHasher()


def hash_password(plain: str) -> str:
    """Return a salted argon2id hash; a fresh salt is drawn on every call."""
    if not plain:
        raise ValueError("Empty password")
    try:
        return _PH.hash(plain)
    except Argon2HashingError as e:
        raise HashingError("Password hashing failed") from e


def verify_password(plain: str, hash_value: str) -> bool:
    if not hash_value or not plain:
        return False
    try:
        return _PH.verify(hash_value, plain)
    except (VerificationError, InvalidHashError):
        return False
