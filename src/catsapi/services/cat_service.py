# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from catsapi.auth.tokens import SessionClaims
from catsapi.auth.users import CredentialStore
from catsapi.errors import Forbidden, NotFound, ValidationError
from catsapi.infra.sqlite_repo import CAT_FIELDS, Cat, SQLiteCatStore
from catsapi.permissions import can_mutate

logger = logging.getLogger(__name__)


def _clean(fields: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
    """Keep known columns only; blank strings become NULL."""
    out: Dict[str, Optional[str]] = {}
    for key in CAT_FIELDS:
        if key not in fields:
            continue
        value = fields[key]
        value = str(value).strip() if value is not None else None
        out[key] = value or None
    return out


class CatService:
    def __init__(self, cats: SQLiteCatStore, users: CredentialStore) -> None:
        self.cats = cats
        self.users = users

    async def list_cats(self) -> List[Cat]:
        return await self.cats.list()

    async def get_cat(self, cat_id: int) -> Cat:
        cat = await self.cats.get(cat_id)
        if cat is None:
            raise NotFound("Cat not found")
        return cat

    async def create_cat(self, claims: SessionClaims, fields: Dict[str, Optional[str]]) -> int:
        data = _clean(fields)
        if not data.get("name"):
            raise ValidationError("name", "Name is required")
        cat_id = await self.cats.insert(data, owner_id=claims.account_id)
        logger.info("Cat id=%s created by account id=%s", cat_id, claims.account_id)
        return cat_id

    async def update_cat(self, claims: SessionClaims, cat_id: int, fields: Dict[str, Optional[str]]) -> None:
        cat = await self._mutable(claims, cat_id)
        data = _clean(fields)
        if "name" in data and not data["name"]:
            raise ValidationError("name", "Name cannot be empty")
        await self.cats.update(cat.id, data)
        logger.info("Cat id=%s updated by account id=%s", cat.id, claims.account_id)

    async def delete_cat(self, claims: SessionClaims, cat_id: int) -> None:
        cat = await self._mutable(claims, cat_id)
        await self.cats.delete(cat.id)
        logger.info("Cat id=%s deleted by account id=%s", cat.id, claims.account_id)

    async def list_tags(self) -> List[str]:
        return await self.cats.tags()

    async def stats(self) -> Dict[str, int]:
        return {"total_users": await self.users.count(), "total_cats": await self.cats.count()}

    async def _mutable(self, claims: SessionClaims, cat_id: int) -> Cat:
        cat = await self.get_cat(cat_id)
        if not can_mutate(claims, cat.owner_id):
            raise Forbidden("Only the owner or an admin can modify this cat")
        return cat
