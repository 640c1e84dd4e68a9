# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Mapping, Optional

from starlette.requests import cookie_parser
from starlette.responses import Response

from catsapi.auth.tokens import SESSION_TTL

COOKIE_NAME = "auth_token"
MAX_AGE_SECONDS = int(SESSION_TTL.total_seconds())  # 7 days


def cookie_settings() -> dict:
    return {"httponly": True, "secure": True, "samesite": "strict", "path": "/"}


def attach_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(COOKIE_NAME, token, max_age=MAX_AGE_SECONDS, **cookie_settings())


def clear_session_cookie(response: Response) -> None:
    response.set_cookie(COOKIE_NAME, "", max_age=0, **cookie_settings())


def _cookie_header(headers: Optional[Mapping[str, str]]) -> str:
    if not headers:
        return ""
    # Starlette Headers are case-insensitive; plain dicts are not.
    value = headers.get("cookie")
    if value is None:
        for key, v in headers.items():
            if str(key).lower() == "cookie":
                value = v
                break
    return value if isinstance(value, str) else ""


def extract_session_token(headers: Optional[Mapping[str, str]]) -> Optional[str]:
    raw = _cookie_header(headers)
    if not raw:
        return None
    token = cookie_parser(raw).get(COOKIE_NAME)
    return token or None
