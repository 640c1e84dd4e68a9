# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Signed, expiring session tokens.

Tokens are ``itsdangerous`` URL-safe payloads carrying the account identity
plus ``iat``/``exp`` as epoch seconds. Expiry is checked against the
embedded ``exp``, never the signer timestamp.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from itsdangerous import BadPayload, BadSignature, URLSafeSerializer

from catsapi.auth.users import Account, Role
from catsapi.config import DEFAULT_SESSION_SALT
from catsapi.errors import Expired, InvalidSignature, Malformed

SESSION_TTL = timedelta(days=7)


@dataclass(frozen=True)
class SessionClaims:
    account_id: int
    username: str
    email: str
    role: Role
    issued_at: datetime
    expires_at: datetime

    def to_payload(self) -> dict:
        return {
            "sub": self.account_id,
            "usr": self.username,
            "eml": self.email,
            "role": self.role.value,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expires_at.timestamp()),
        }

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "SessionClaims":
        try:
            return cls(
                account_id=int(data["sub"]),
                username=str(data["usr"]),
                email=str(data["eml"]),
                role=Role(data["role"]),
                issued_at=datetime.fromtimestamp(int(data["iat"]), tz=timezone.utc),
                expires_at=datetime.fromtimestamp(int(data["exp"]), tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise Malformed("Token claims are incomplete") from e


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value is None:
        return _utcnow()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _serializer(secret: str, salt: str) -> URLSafeSerializer:
    if not secret:
        raise RuntimeError("Token secret must not be empty")
    return URLSafeSerializer(secret_key=secret, salt=salt)


def sign_token(
    account: Account,
    secret: str,
    ttl: timedelta = SESSION_TTL,
    *,
    now: Optional[datetime] = None,
    salt: str = DEFAULT_SESSION_SALT,
) -> str:
    issued = _as_utc(now).replace(microsecond=0)
    claims = SessionClaims(
        account_id=account.id,
        username=account.username,
        email=account.email,
        role=account.role,
        issued_at=issued,
        expires_at=issued + ttl,
    )
    return _serializer(secret, salt).dumps(claims.to_payload())


def verify_token(
    token: str,
    secret: str,
    *,
    now: Optional[datetime] = None,
    salt: str = DEFAULT_SESSION_SALT,
) -> SessionClaims:
    """Return the claims signed into ``token``.

    Raises ``Malformed`` when the token cannot be parsed, ``InvalidSignature``
    when the integrity check fails and ``Expired`` once ``now >= exp``.
    """
    if not isinstance(token, str) or "." not in token.strip(".") or not token.rsplit(".", 1)[1]:
        raise Malformed("Token is not a signed payload")
    try:
        data = _serializer(secret, salt).loads(token)
    except BadPayload as e:
        raise Malformed("Token payload cannot be decoded") from e
    except BadSignature as e:
        raise InvalidSignature("Token signature mismatch") from e
    if not isinstance(data, dict):
        raise Malformed("Token payload is not an object")
    claims = SessionClaims.from_payload(data)
    if _as_utc(now) >= claims.expires_at:
        raise Expired("Token expired")
    return claims
