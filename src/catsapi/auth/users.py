# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Account:
    """Public view of an account. Never carries the password hash."""

    id: int
    username: str
    email: str
    role: Role
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role.value,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class UserRecord:
    id: int
    username: str
    email: str
    role: Role
    created_at: datetime
    password_hash: str

    def to_account(self) -> Account:
        return Account(
            id=self.id,
            username=self.username,
            email=self.email,
            role=self.role,
            created_at=self.created_at,
        )


class CredentialStore(Protocol):
    """Persistence contract for accounts consumed by ``AuthService``.

    Implementations must enforce uniqueness of ``username`` and ``email`` and
    raise ``catsapi.errors.Conflict`` naming the violated field on insert.
    """

    async def find_by_email_or_username(self, email: str, username: str) -> Optional[UserRecord]: ...

    async def find_by_email(self, email: str) -> Optional[UserRecord]: ...

    async def find_by_id(self, account_id: int) -> Optional[UserRecord]: ...

    async def insert(self, username: str, email: str, password_hash: str, role: Role) -> UserRecord: ...

    async def count(self) -> int: ...
