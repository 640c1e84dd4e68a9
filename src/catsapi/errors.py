# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy shared by the auth core and the catalog routes.

Routes map these to HTTP statuses in one place (see ``catsapi.app``).
"""

from __future__ import annotations

from typing import Optional


class CatsApiError(Exception):
    """Base class for every error raised on purpose by this package."""

    kind = "error"

    def __init__(self, message: str = "", *, field: Optional[str] = None) -> None:
        super().__init__(message or self.kind)
        self.field = field


class ValidationError(CatsApiError):
    kind = "validation_error"

    def __init__(self, field: str, message: str = "") -> None:
        super().__init__(message or f"Invalid {field}", field=field)


class Conflict(CatsApiError):
    kind = "conflict"

    def __init__(self, field: str, message: str = "") -> None:
        super().__init__(message or f"{field.capitalize()} already in use", field=field)


class InvalidCredentials(CatsApiError):
    """Login failure. Same error for unknown email and wrong password."""

    kind = "invalid_credentials"

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class HashingError(CatsApiError):
    kind = "hashing_error"


class AuthenticationRequired(CatsApiError):
    kind = "authentication_required"


class NotFound(CatsApiError):
    kind = "not_found"


class Forbidden(CatsApiError):
    kind = "forbidden"


class TokenError(CatsApiError):
    kind = "token_error"


class InvalidSignature(TokenError):
    kind = "invalid_signature"


class Expired(TokenError):
    kind = "expired"


class Malformed(TokenError):
    kind = "malformed"
