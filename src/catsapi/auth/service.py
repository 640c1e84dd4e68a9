# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional, Tuple

from starlette.concurrency import run_in_threadpool

from catsapi.auth.passwords import hash_password, verify_password
from catsapi.auth.session import extract_session_token
from catsapi.auth.tokens import SESSION_TTL, SessionClaims, sign_token, verify_token
from catsapi.auth.users import Account, CredentialStore, Role
from catsapi.config import DEFAULT_SESSION_SALT
from catsapi.errors import Conflict, InvalidCredentials, TokenError, ValidationError

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,20}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def validate_registration(username: str, email: str, password: str) -> Tuple[str, str]:
    """Check registration input; return the normalised (username, email)."""
    u = (username or "").strip()
    if not USERNAME_RE.match(u):
        raise ValidationError("username", "Username must be 3-20 letters, digits or underscores")
    e = normalize_email(email)
    if not EMAIL_RE.match(e):
        raise ValidationError("email", "Email address is not valid")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return u, e


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    """Registration, login and per-request authentication.

    Stateless apart from its collaborators: the credential store, the signing
    secret and a clock. Sessions live entirely in the signed cookie.
    """

    def __init__(
        self,
        store: CredentialStore,
        secret: str,
        *,
        salt: str = DEFAULT_SESSION_SALT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise RuntimeError("AuthService requires a signing secret")
        self.store = store
        self._secret = secret
        self._salt = salt
        self._clock = clock
        self._dummy_hash: Optional[str] = None

    async def register(self, username: str, email: str, password: str) -> Account:
        account = await self.provision_account(username, email, password, Role.USER)
        logger.info("Registered account id=%s username=%s", account.id, account.username)
        return account

    async def provision_account(self, username: str, email: str, password: str, role: Role) -> Account:
        """Create an account with an explicit role.

        ``register`` always goes through here with ``Role.USER``; other roles are
        only reachable from operator tooling.
        """
        u, e = validate_registration(username, email, password)

        # Fast path for a friendly error; the UNIQUE constraints decide.
        existing = await self.store.find_by_email_or_username(e, u)
        if existing is not None:
            if existing.email == e:
                raise Conflict("email")
            raise Conflict("username")

        password_hash = await run_in_threadpool(hash_password, password)
        record = await self.store.insert(u, e, password_hash, role)
        return record.to_account()

    async def login(self, email: str, password: str) -> Tuple[Account, str]:
        e = normalize_email(email)
        if not e:
            raise ValidationError("email", "Email is required")
        if not password:
            raise ValidationError("password", "Password is required")

        record = await self.store.find_by_email(e)
        if record is None:
            # Same hashing work as the wrong-password path.
            await run_in_threadpool(verify_password, password, await self._get_dummy_hash())
            logger.warning("Failed login attempt")
            raise InvalidCredentials()

        ok = await run_in_threadpool(verify_password, password, record.password_hash)
        if not ok:
            logger.warning("Failed login attempt")
            raise InvalidCredentials()

        account = record.to_account()
        token = sign_token(account, self._secret, SESSION_TTL, now=self._clock(), salt=self._salt)
        logger.info("Login account id=%s", account.id)
        return account, token

    def logout(self) -> None:
        """Nothing to revoke server-side; the caller clears the cookie."""
        return None

    async def authenticate_request(self, headers: Optional[Mapping[str, str]]) -> Optional[SessionClaims]:
        token = extract_session_token(headers)
        if token is None:
            return None
        try:
            return verify_token(token, self._secret, now=self._clock(), salt=self._salt)
        except TokenError as e:
            logger.debug("Rejected session token: %s", e.kind)
            return None

    async def get_account(self, account_id: int) -> Optional[Account]:
        record = await self.store.find_by_id(account_id)
        return record.to_account() if record else None

    async def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = await run_in_threadpool(hash_password, "not-a-real-password")
        return self._dummy_hash
