from datetime import datetime, timedelta

import pytest

from catsapi.auth.service import AuthService
from catsapi.auth.session import COOKIE_NAME
from catsapi.auth.users import Role
from catsapi.errors import Conflict, InvalidCredentials, ValidationError

from conftest import SECRET, FakeClock


def _cookie(token: str) -> dict:
    return {"cookie": f"theme=dark; {COOKIE_NAME}={token}"}


@pytest.mark.asyncio
async def test_register_then_login_yields_matching_account_id(auth):
    account = await auth.register("tom_cat", "Tom@Example.com", "meowmeow")
    assert account.role is Role.USER
    assert account.email == "tom@example.com"
    assert not hasattr(account, "password_hash")

    logged_in, token = await auth.login("tom@example.com", "meowmeow")
    assert logged_in.id == account.id

    claims = await auth.authenticate_request(_cookie(token))
    assert claims is not None
    assert claims.account_id == account.id
    assert claims.username == "tom_cat"
    assert claims.role is Role.USER


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username,email,password,field",
    [
        ("ab", "a@b.co", "secret1", "username"),
        ("x" * 21, "a@b.co", "secret1", "username"),
        ("bad name", "a@b.co", "secret1", "username"),
        ("good_name", "not-an-email", "secret1", "email"),
        ("good_name", "a@b", "secret1", "email"),
        ("good_name", "a@b.co", "12345", "password"),
    ],
)
async def test_register_validation(auth, username, email, password, field):
    with pytest.raises(ValidationError) as ei:
        await auth.register(username, email, password)
    assert ei.value.field == field


@pytest.mark.asyncio
async def test_register_duplicate_username(auth):
    await auth.register("felix", "felix@example.com", "secret1")
    with pytest.raises(Conflict) as ei:
        await auth.register("felix", "other@example.com", "secret1")
    assert ei.value.field == "username"


@pytest.mark.asyncio
async def test_register_duplicate_email(auth):
    await auth.register("felix", "felix@example.com", "secret1")
    with pytest.raises(Conflict) as ei:
        await auth.register("garfield", "FELIX@example.com", "secret1")
    assert ei.value.field == "email"


@pytest.mark.asyncio
async def test_register_reports_email_conflict_first(auth):
    await auth.register("felix", "felix@example.com", "secret1")
    await auth.register("garfield", "garfield@example.com", "secret1")
    with pytest.raises(Conflict) as ei:
        await auth.register("felix", "garfield@example.com", "secret1")
    assert ei.value.field == "email"


@pytest.mark.asyncio
async def test_register_conflict_from_store_when_precheck_misses(user_store):
    class RacyStore:
        """Pre-check always sees nothing, as if a concurrent insert won the race."""

        async def find_by_email_or_username(self, email, username):
            return None

        def __getattr__(self, name):
            return getattr(user_store, name)

    auth = AuthService(RacyStore(), SECRET)
    await auth.register("felix", "felix@example.com", "secret1")
    with pytest.raises(Conflict) as ei:
        await auth.register("felix", "second@example.com", "secret1")
    assert ei.value.field == "username"


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(auth):
    await auth.register("felix", "felix@example.com", "secret1")
    with pytest.raises(InvalidCredentials) as wrong_password:
        await auth.login("felix@example.com", "not-it")
    with pytest.raises(InvalidCredentials) as unknown_email:
        await auth.login("nobody@example.com", "secret1")
    assert type(wrong_password.value) is type(unknown_email.value)
    assert str(wrong_password.value) == str(unknown_email.value)
    assert wrong_password.value.field == unknown_email.value.field


@pytest.mark.asyncio
@pytest.mark.parametrize("email,password,field", [("", "secret1", "email"), ("a@b.co", "", "password")])
async def test_login_requires_both_fields(auth, email, password, field):
    with pytest.raises(ValidationError) as ei:
        await auth.login(email, password)
    assert ei.value.field == field


@pytest.mark.asyncio
async def test_authenticate_request_without_cookie(auth):
    assert await auth.authenticate_request({}) is None
    assert await auth.authenticate_request(None) is None
    assert await auth.authenticate_request({"cookie": "foo=bar"}) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["xyz123", "abc.def", "e30.AAAA"])
async def test_authenticate_request_swallows_bad_tokens(auth, token):
    assert await auth.authenticate_request(_cookie(token)) is None


@pytest.mark.asyncio
async def test_authenticate_request_rejects_expired_session(auth, clock):
    await auth.register("felix", "felix@example.com", "secret1")
    _, token = await auth.login("felix@example.com", "secret1")
    clock.now = clock.now + timedelta(days=6)
    assert await auth.authenticate_request(_cookie(token)) is not None
    clock.now = clock.now + timedelta(days=1)
    assert await auth.authenticate_request(_cookie(token)) is None


@pytest.mark.asyncio
async def test_authenticate_request_rejects_other_secret(auth, user_store, clock):
    await auth.register("felix", "felix@example.com", "secret1")
    _, token = await auth.login("felix@example.com", "secret1")
    rotated = AuthService(user_store, "rotated-secret", clock=clock)
    assert await rotated.authenticate_request(_cookie(token)) is None


@pytest.mark.asyncio
async def test_provision_admin_account(auth):
    admin = await auth.provision_account("boss", "boss@example.com", "secret1", Role.ADMIN)
    assert admin.role is Role.ADMIN
    _, token = await auth.login("boss@example.com", "secret1")
    claims = await auth.authenticate_request(_cookie(token))
    assert claims.role is Role.ADMIN


@pytest.mark.asyncio
async def test_get_account(auth):
    account = await auth.register("felix", "felix@example.com", "secret1")
    assert await auth.get_account(account.id) == account
    assert await auth.get_account(999) is None


def test_logout_always_succeeds(auth):
    assert auth.logout() is None


def test_service_requires_secret(user_store):
    with pytest.raises(RuntimeError):
        AuthService(user_store, "")


@pytest.mark.asyncio
async def test_authenticate_request_with_naive_clock(user_store):
    clock = FakeClock(datetime(2026, 1, 1, 12, 0))
    auth = AuthService(user_store, SECRET, clock=clock)
    await auth.register("felix", "felix@example.com", "secret1")
    _, token = await auth.login("felix@example.com", "secret1")
    assert (await auth.authenticate_request(_cookie(token))).username == "felix"
    clock.now = clock.now + timedelta(days=7)
    assert await auth.authenticate_request(_cookie(token)) is None
