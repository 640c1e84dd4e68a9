# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication core.

This package provides:
- Password hashing/verification (argon2)
- Signed, expiring session tokens (itsdangerous)
- The ``auth_token`` session cookie
- Account model and credential store contract
- Registration, login, logout and per-request authentication
"""
