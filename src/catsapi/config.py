# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Tuple

DEFAULT_SESSION_SALT = "catsapi.session.v1"


def _split_csv(raw: str) -> Tuple[str, ...]:
    return tuple(p.strip() for p in (raw or "").split(",") if p.strip())


@dataclass(frozen=True)
class Settings:
    secret_key: str
    session_salt: str = DEFAULT_SESSION_SALT
    db_path: str = "data/cats.db"
    cors_origins: Tuple[str, ...] = ()
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``CATS_*`` environment variables.

        The signing secret is mandatory: without it no session can be issued
        or verified, so startup fails immediately.
        """
        secret = os.getenv("CATS_SECRET_KEY") or os.getenv("SECRET_KEY")
        if not secret:
            raise RuntimeError("Missing CATS_SECRET_KEY (or SECRET_KEY) in environment")
        return cls(
            secret_key=secret,
            session_salt=os.getenv("CATS_SESSION_SALT", DEFAULT_SESSION_SALT),
            db_path=os.getenv("CATS_DB_PATH", "data/cats.db"),
            cors_origins=_split_csv(os.getenv("CATS_CORS_ORIGINS", "")),
            log_level=os.getenv("CATS_LOG_LEVEL", "INFO").upper(),
        )
