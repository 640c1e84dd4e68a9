# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import aiosqlite
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catsapi.auth.service import AuthService
from catsapi.auth.session import attach_session_cookie, clear_session_cookie
from catsapi.auth.tokens import SessionClaims
from catsapi.auth.users import Role
from catsapi.config import Settings
from catsapi.errors import (
    AuthenticationRequired,
    CatsApiError,
    Conflict,
    Forbidden,
    HashingError,
    InvalidCredentials,
    NotFound,
    ValidationError,
)
from catsapi.infra.sqlite_repo import Database, SQLiteCatStore, SQLiteCredentialStore
from catsapi.models import AccountOut, CatIn, CatOut, LoginRequest, RegisterRequest, StatsOut
from catsapi.permissions import load_user_from_request, require_role, require_user
from catsapi.services.cat_service import CatService

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    AuthenticationRequired: 401,
    ValidationError: 400,
    Conflict: 409,
    InvalidCredentials: 401,
    Forbidden: 403,
    NotFound: 404,
    HashingError: 500,
}


def _status_for(exc: CatsApiError) -> int:
    for cls, status in ERROR_STATUS.items():
        if isinstance(exc, cls):
            return status
    return 500


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API. Fails fast when no signing secret is configured."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(settings.db_path)
        await db.initialize()
        users = SQLiteCredentialStore(db)
        app.state.db = db
        app.state.auth = AuthService(users, settings.secret_key, salt=settings.session_salt)
        app.state.cats = CatService(SQLiteCatStore(db), users)
        try:
            yield
        finally:
            await db.close()

    app = FastAPI(title="Cats API", version="1.0.0", lifespan=lifespan)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type"],
        )

    @app.middleware("http")
    async def _auth_middleware(request: Request, call_next):
        request.state.user = await load_user_from_request(request)
        return await call_next(request)

    @app.exception_handler(CatsApiError)
    async def _cats_api_error(request: Request, exc: CatsApiError):
        status = _status_for(exc)
        if status >= 500:
            logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.kind, exc_info=exc)
            return JSONResponse({"error": "internal_error", "field": None, "detail": "Internal server error"}, status_code=500)
        return JSONResponse({"error": exc.kind, "field": exc.field, "detail": str(exc)}, status_code=status)

    @app.exception_handler(aiosqlite.Error)
    async def _store_error(request: Request, exc: aiosqlite.Error):
        logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse({"error": "internal_error", "field": None, "detail": "Internal server error"}, status_code=500)

    # ------------------ Routes ------------------

    @app.get("/")
    async def health_check():
        return {"status": "ok"}

    @app.post("/auth/register", response_model=AccountOut, status_code=201)
    async def register(req: RegisterRequest, request: Request):
        account = await request.app.state.auth.register(req.username, req.email, req.password)
        return account.to_dict()

    @app.post("/auth/login", response_model=AccountOut)
    async def login(req: LoginRequest, request: Request):
        account, token = await request.app.state.auth.login(req.email, req.password)
        resp = JSONResponse(account.to_dict())
        attach_session_cookie(resp, token)
        return resp

    @app.post("/auth/logout")
    async def logout(request: Request):
        request.app.state.auth.logout()
        resp = JSONResponse({"message": "Logged out"})
        clear_session_cookie(resp)
        return resp

    @app.get("/users/me", response_model=AccountOut)
    async def me(request: Request, user: SessionClaims = Depends(require_user)):
        account = await request.app.state.auth.get_account(user.account_id)
        if account is None:
            raise NotFound("Account no longer exists")
        return account.to_dict()

    @app.get("/cats", response_model=List[CatOut])
    async def list_cats(request: Request):
        return [c.to_dict() for c in await request.app.state.cats.list_cats()]

    @app.get("/cats/{cat_id}", response_model=CatOut)
    async def get_cat(cat_id: int, request: Request):
        return (await request.app.state.cats.get_cat(cat_id)).to_dict()

    @app.post("/cats", status_code=201)
    async def create_cat(body: CatIn, request: Request, user: SessionClaims = Depends(require_user)):
        fields = body.model_dump(exclude_unset=True)
        cat_id = await request.app.state.cats.create_cat(user, fields)
        return {"message": f"Record of {(fields.get('name') or '').strip()} added successfully", "id": cat_id}

    @app.put("/cats/{cat_id}")
    async def update_cat(cat_id: int, body: CatIn, request: Request, user: SessionClaims = Depends(require_user)):
        await request.app.state.cats.update_cat(user, cat_id, body.model_dump(exclude_unset=True))
        return {"message": f"Cat {cat_id} updated successfully"}

    @app.delete("/cats/{cat_id}")
    async def delete_cat(cat_id: int, request: Request, user: SessionClaims = Depends(require_user)):
        await request.app.state.cats.delete_cat(user, cat_id)
        return {"message": f"Record Num: {cat_id} deleted successfully"}

    @app.get("/tags", response_model=List[str])
    async def list_tags(request: Request):
        return await request.app.state.cats.list_tags()

    @app.get("/admin/stats", response_model=StatsOut)
    async def admin_stats(request: Request, user: SessionClaims = Depends(require_role(Role.ADMIN))):
        return await request.app.state.cats.stats()

    return app
