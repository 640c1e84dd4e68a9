# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class AccountOut(BaseModel):
    id: int
    username: str
    email: str
    role: str
    created_at: str


class CatIn(BaseModel):
    # Older clients send the image as "IMG".
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    tag: Optional[str] = None
    description: Optional[str] = None
    img: Optional[str] = Field(None, alias="IMG")


class CatOut(BaseModel):
    id: int
    name: str
    tag: Optional[str] = None
    description: Optional[str] = None
    img: Optional[str] = None
    owner_id: Optional[int] = None
    created_at: str


class StatsOut(BaseModel):
    total_users: int
    total_cats: int
