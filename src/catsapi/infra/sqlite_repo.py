# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""SQLite persistence for accounts and cats (aiosqlite).

One connection per process, opened by ``Database.initialize`` and shared by
both stores. Every write is a single statement followed by a commit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite

from catsapi.auth.users import Role, UserRecord
from catsapi.errors import Conflict

logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'user' CHECK (role IN ('user', 'admin')),
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cats (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        tag TEXT,
        description TEXT,
        img TEXT,
        owner_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_cats_owner ON cats(owner_id)",
)

CAT_FIELDS = ("name", "tag", "description", "img")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_ts(value: Any) -> datetime:
    dt = datetime.fromisoformat(str(value))
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


class Database:
    """Owns the shared aiosqlite connection and the schema."""

    def __init__(self, db_path: str = "data/cats.db") -> None:
        self.db_path = db_path
        self.conn: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        if self.conn is not None:
            return
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = await aiosqlite.connect(self.db_path)
        self.conn.row_factory = aiosqlite.Row
        await self.conn.execute("PRAGMA foreign_keys = ON")
        for stmt in SCHEMA:
            await self.conn.execute(stmt)
        await self.conn.commit()
        logger.info("SQLite database ready: %s", self.db_path)

    async def close(self) -> None:
        if self.conn is not None:
            await self.conn.close()
            self.conn = None
            logger.info("SQLite database closed")

    def _require(self) -> aiosqlite.Connection:
        if self.conn is None:
            raise RuntimeError("Database is not initialized")
        return self.conn

    async def fetch_one(self, sql: str, params: tuple = ()) -> Optional[aiosqlite.Row]:
        async with self._require().execute(sql, params) as cur:
            return await cur.fetchone()

    async def fetch_all(self, sql: str, params: tuple = ()) -> List[aiosqlite.Row]:
        async with self._require().execute(sql, params) as cur:
            return list(await cur.fetchall())

    async def write(self, sql: str, params: tuple = ()) -> aiosqlite.Cursor:
        conn = self._require()
        cur = await conn.execute(sql, params)
        await conn.commit()
        return cur


def _row_to_user(row: Optional[aiosqlite.Row]) -> Optional[UserRecord]:
    if row is None:
        return None
    return UserRecord(
        id=int(row["id"]),
        username=row["username"],
        email=row["email"],
        role=Role(row["role"]),
        created_at=_parse_ts(row["created_at"]),
        password_hash=row["password_hash"],
    )


def _conflict_field(exc: aiosqlite.IntegrityError) -> str:
    # sqlite reports e.g. "UNIQUE constraint failed: users.email"
    msg = str(exc)
    return "email" if "users.email" in msg else "username"


class SQLiteCredentialStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def find_by_email_or_username(self, email: str, username: str) -> Optional[UserRecord]:
        # Email matches sort first so the caller reports the email conflict.
        row = await self.db.fetch_one(
            "SELECT * FROM users WHERE email = ? OR username = ? "
            "ORDER BY (email = ?) DESC, id LIMIT 1",
            (email, username, email),
        )
        return _row_to_user(row)

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        return _row_to_user(await self.db.fetch_one("SELECT * FROM users WHERE email = ?", (email,)))

    async def find_by_id(self, account_id: int) -> Optional[UserRecord]:
        return _row_to_user(await self.db.fetch_one("SELECT * FROM users WHERE id = ?", (account_id,)))

    async def insert(self, username: str, email: str, password_hash: str, role: Role) -> UserRecord:
        try:
            cur = await self.db.write(
                "INSERT INTO users (username, email, password_hash, role, created_at) VALUES (?, ?, ?, ?, ?)",
                (username, email, password_hash, Role(role).value, _now_iso()),
            )
        except aiosqlite.IntegrityError as e:
            raise Conflict(_conflict_field(e)) from e
        record = await self.find_by_id(int(cur.lastrowid))
        if record is None:
            raise RuntimeError("Inserted account could not be read back")
        return record

    async def count(self) -> int:
        row = await self.db.fetch_one("SELECT COUNT(*) AS n FROM users")
        return int(row["n"]) if row else 0


@dataclass(frozen=True)
class Cat:
    id: int
    name: str
    tag: Optional[str]
    description: Optional[str]
    img: Optional[str]
    owner_id: Optional[int]
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tag": self.tag,
            "description": self.description,
            "img": self.img,
            "owner_id": self.owner_id,
            "created_at": self.created_at.isoformat(),
        }


def _row_to_cat(row: Optional[aiosqlite.Row]) -> Optional[Cat]:
    if row is None:
        return None
    return Cat(
        id=int(row["id"]),
        name=row["name"],
        tag=row["tag"],
        description=row["description"],
        img=row["img"],
        owner_id=row["owner_id"],
        created_at=_parse_ts(row["created_at"]),
    )


class SQLiteCatStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def list(self) -> List[Cat]:
        rows = await self.db.fetch_all("SELECT * FROM cats ORDER BY id")
        return [_row_to_cat(r) for r in rows]

    async def get(self, cat_id: int) -> Optional[Cat]:
        return _row_to_cat(await self.db.fetch_one("SELECT * FROM cats WHERE id = ?", (cat_id,)))

    async def insert(self, fields: Dict[str, Optional[str]], owner_id: Optional[int]) -> int:
        cur = await self.db.write(
            "INSERT INTO cats (name, tag, description, img, owner_id, created_at) VALUES (?, ?, ?, ?, ?, ?)",
            tuple(fields.get(k) for k in CAT_FIELDS) + (owner_id, _now_iso()),
        )
        return int(cur.lastrowid)

    async def update(self, cat_id: int, fields: Dict[str, Optional[str]]) -> bool:
        cols = [k for k in CAT_FIELDS if k in fields]
        if not cols:
            return False
        assignments = ", ".join(f"{c} = ?" for c in cols)
        cur = await self.db.write(
            f"UPDATE cats SET {assignments} WHERE id = ?",
            tuple(fields[c] for c in cols) + (cat_id,),
        )
        return cur.rowcount > 0

    async def delete(self, cat_id: int) -> bool:
        cur = await self.db.write("DELETE FROM cats WHERE id = ?", (cat_id,))
        return cur.rowcount > 0

    async def tags(self) -> List[str]:
        rows = await self.db.fetch_all(
            "SELECT DISTINCT TRIM(tag) AS tag FROM cats "
            "WHERE tag IS NOT NULL AND TRIM(tag) != '' "
            "ORDER BY LOWER(TRIM(tag)) ASC"
        )
        return [r["tag"] for r in rows]

    async def count(self) -> int:
        row = await self.db.fetch_one("SELECT COUNT(*) AS n FROM cats")
        return int(row["n"]) if row else 0
