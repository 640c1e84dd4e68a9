import sys
from datetime import datetime, timezone
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

import pytest
from fastapi.testclient import TestClient

from catsapi.app import create_app
from catsapi.auth.service import AuthService
from catsapi.config import Settings
from catsapi.infra.sqlite_repo import Database, SQLiteCatStore, SQLiteCredentialStore

SECRET = "test-secret-key"


class FakeClock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
async def db():
    database = Database(":memory:")
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture()
def user_store(db) -> SQLiteCredentialStore:
    return SQLiteCredentialStore(db)


@pytest.fixture()
def cat_store(db) -> SQLiteCatStore:
    return SQLiteCatStore(db)


@pytest.fixture()
def auth(user_store, clock) -> AuthService:
    return AuthService(user_store, SECRET, clock=clock)


@pytest.fixture()
def settings(tmp_path: _Path) -> Settings:
    return Settings(secret_key=SECRET, db_path=str(tmp_path / "data" / "cats.db"))


@pytest.fixture()
def client(settings):
    # Session cookies are Secure, so the client must talk https.
    with TestClient(create_app(settings), base_url="https://testserver") as c:
        yield c
