# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Optional

from fastapi import Request

from catsapi.auth.tokens import SessionClaims
from catsapi.auth.users import Role
from catsapi.errors import AuthenticationRequired, Forbidden


def can_mutate(claims: SessionClaims, resource_owner_id: Optional[int]) -> bool:
    """Owner-or-admin rule for modifying a resource."""
    return claims.role == Role.ADMIN or claims.account_id == resource_owner_id


async def load_user_from_request(request: Request) -> Optional[SessionClaims]:
    return await request.app.state.auth.authenticate_request(request.headers)


async def current_user_optional(request: Request) -> Optional[SessionClaims]:
    u = getattr(request.state, "user", None)
    if u is not None:
        return u
    return await load_user_from_request(request)


async def require_user(request: Request) -> SessionClaims:
    u = await current_user_optional(request)
    if u:
        return u
    raise AuthenticationRequired("Authentication required")


def require_role(role: Role):
    async def _dep(request: Request) -> SessionClaims:
        u = await require_user(request)
        if u.role != role and u.role != Role.ADMIN:
            raise Forbidden("Forbidden")
        return u

    return _dep
