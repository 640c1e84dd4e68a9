#!/usr/bin/env python3
from __future__ import annotations

import asyncio
from getpass import getpass

from catsapi.auth.service import AuthService
from catsapi.auth.users import Role
from catsapi.config import Settings
from catsapi.errors import CatsApiError
from catsapi.infra.sqlite_repo import Database, SQLiteCredentialStore


async def provision(settings: Settings, username: str, email: str, password: str, role: Role) -> None:
    db = Database(settings.db_path)
    await db.initialize()
    try:
        auth = AuthService(SQLiteCredentialStore(db), settings.secret_key, salt=settings.session_salt)
        account = await auth.provision_account(username, email, password, role)
    finally:
        await db.close()
    print(f"OK -> id={account.id} username={account.username} role={account.role.value} ({settings.db_path})")


def main() -> None:
    settings = Settings.from_env()

    username = input("Username: ").strip()
    email = input("Email: ").strip()
    role_in = input("Role [admin/user]: ").strip().lower() or "admin"
    try:
        role = Role(role_in)
    except ValueError:
        raise SystemExit(f"Unknown role: {role_in}")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    try:
        asyncio.run(provision(settings, username, email, pw1, role))
    except CatsApiError as e:
        raise SystemExit(f"Error: {e}")


if __name__ == "__main__":
    main()
