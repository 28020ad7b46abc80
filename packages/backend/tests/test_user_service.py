"""UserService — session lifecycle, profile updates, avatars."""

import pytest
import pytest_asyncio

from conftest import png_bytes
from tasktrack.auth.sessions import SessionVerifier
from tasktrack.db.models import NO_AVATAR
from tasktrack.errors import AuthenticationError, ValidationError
from tasktrack.events.types import USER_LOGGED_IN, USER_SIGNED_UP
from tasktrack.services.user_service import UserService
from tasktrack.store.users import UserStore

PASSWORD = "secret_pw_1"


@pytest.fixture()
def make_service(db_session, tokens, passwords, storage):
    def _make(context=None, hooks=()):
        return UserService(db_session, tokens, passwords, storage, context=context, hooks=hooks)

    return _make


@pytest_asyncio.fixture()
async def signed_up(make_service):
    result = await make_service().sign_up(
        {"name": "Sam", "email": "sam@example.com", "password": PASSWORD, "age": 33}
    )
    return result


async def _context(db_session, tokens, token):
    return await SessionVerifier(UserStore(db_session), tokens).authenticate(token)


# ═══════════════════════════════════════════════════════════
# Sign-up & login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_sign_up_returns_user_and_working_token(signed_up, db_session, tokens):
    assert signed_up.user.email == "sam@example.com"
    assert signed_up.user.age == 33
    ctx = await _context(db_session, tokens, signed_up.token)
    assert ctx.user_id == signed_up.user.id


@pytest.mark.asyncio
async def test_sign_up_never_exposes_password_hash(signed_up):
    dumped = signed_up.model_dump()
    assert "password" not in dumped["user"]
    assert "password_hash" not in dumped["user"]


@pytest.mark.asyncio
async def test_sign_up_rejects_extra_fields(make_service):
    with pytest.raises(ValidationError):
        await make_service().sign_up(
            {"name": "X", "email": "x@example.com", "password": PASSWORD, "_id": "x"}
        )


@pytest.mark.asyncio
async def test_login_adds_second_session(signed_up, make_service, db_session):
    result = await make_service().login("SAM@example.com", PASSWORD)
    assert result.token != signed_up.token
    user = await UserStore(db_session).get(signed_up.user.id)
    assert [s.token for s in user.sessions] == [signed_up.token, result.token]


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(signed_up, make_service):
    with pytest.raises(AuthenticationError) as wrong_pw:
        await make_service().login("sam@example.com", "not-the-password")
    with pytest.raises(AuthenticationError) as unknown:
        await make_service().login("nobody@example.com", PASSWORD)
    assert wrong_pw.value.message == unknown.value.message


@pytest.mark.asyncio
async def test_events_emitted_on_sign_up_and_login(make_service):
    seen = []
    svc = make_service(hooks=[lambda event_type, data: seen.append(event_type)])
    await svc.sign_up({"name": "Ev", "email": "ev@example.com", "password": PASSWORD})
    await svc.login("ev@example.com", PASSWORD)
    assert seen == [USER_SIGNED_UP, USER_LOGGED_IN]


# ═══════════════════════════════════════════════════════════
# Logout
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_logout_revokes_only_current_token(signed_up, make_service, db_session, tokens):
    second = await make_service().login("sam@example.com", PASSWORD)

    ctx = await _context(db_session, tokens, signed_up.token)
    await make_service(context=ctx).logout()

    with pytest.raises(AuthenticationError):
        await _context(db_session, tokens, signed_up.token)
    assert (await _context(db_session, tokens, second.token)).user_id == signed_up.user.id


@pytest.mark.asyncio
async def test_logout_all_revokes_every_token(signed_up, make_service, db_session, tokens):
    second = await make_service().login("sam@example.com", PASSWORD)

    ctx = await _context(db_session, tokens, second.token)
    await make_service(context=ctx).logout_all()

    for token in (signed_up.token, second.token):
        with pytest.raises(AuthenticationError):
            await _context(db_session, tokens, token)


@pytest.mark.asyncio
async def test_operations_without_context_require_auth(make_service):
    with pytest.raises(AuthenticationError):
        await make_service().logout()


# ═══════════════════════════════════════════════════════════
# Profile
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_update_profile_and_password(signed_up, make_service, db_session, tokens):
    ctx = await _context(db_session, tokens, signed_up.token)
    user = await make_service(context=ctx).update_profile({"name": "Samantha", "password": "new_pw_123"})
    assert user.name == "Samantha"

    await make_service().login("sam@example.com", "new_pw_123")
    with pytest.raises(AuthenticationError):
        await make_service().login("sam@example.com", PASSWORD)


@pytest.mark.asyncio
@pytest.mark.parametrize("updates", [{"_id": "x"}, {"id": "x"}, {"tokens": []}, {}])
async def test_update_profile_rejects_disallowed_or_empty(signed_up, make_service, db_session, tokens, updates):
    ctx = await _context(db_session, tokens, signed_up.token)
    with pytest.raises(ValidationError):
        await make_service(context=ctx).update_profile(updates)


@pytest.mark.asyncio
async def test_update_profile_duplicate_email(signed_up, make_service, db_session, tokens):
    await make_service().sign_up({"name": "Other", "email": "other@example.com", "password": PASSWORD})
    ctx = await _context(db_session, tokens, signed_up.token)
    with pytest.raises(ValidationError):
        await make_service(context=ctx).update_profile({"email": "other@example.com"})


@pytest.mark.asyncio
async def test_delete_account_revokes_tokens(signed_up, make_service, db_session, tokens):
    ctx = await _context(db_session, tokens, signed_up.token)
    await make_service(context=ctx).delete_account()
    with pytest.raises(AuthenticationError):
        await _context(db_session, tokens, signed_up.token)


# ═══════════════════════════════════════════════════════════
# Avatar
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_upload_avatar_stores_three_renditions(signed_up, make_service, db_session, tokens, storage):
    ctx = await _context(db_session, tokens, signed_up.token)
    user = await make_service(context=ctx).upload_avatar(png_bytes())

    assert user.avatar.small.startswith("http://test/media/users/")
    assert user.avatar.large.endswith("avatar_large.jpg")
    for kind in ("original", "small", "large"):
        assert (storage.root / f"users/{user.id}/avatar/avatar_{kind}.jpg").is_file()


@pytest.mark.asyncio
async def test_upload_avatar_rejects_non_image(signed_up, make_service, db_session, tokens):
    ctx = await _context(db_session, tokens, signed_up.token)
    with pytest.raises(ValidationError):
        await make_service(context=ctx).upload_avatar(b"definitely not an image")


@pytest.mark.asyncio
async def test_upload_without_file_resets_avatar(signed_up, make_service, db_session, tokens):
    ctx = await _context(db_session, tokens, signed_up.token)
    user = await make_service(context=ctx).upload_avatar(None)
    assert user.avatar.original == NO_AVATAR


@pytest.mark.asyncio
async def test_delete_avatar_removes_files(signed_up, make_service, db_session, tokens, storage):
    ctx = await _context(db_session, tokens, signed_up.token)
    await make_service(context=ctx).upload_avatar(png_bytes())

    ctx = await _context(db_session, tokens, signed_up.token)
    user = await make_service(context=ctx).delete_avatar()

    assert user.avatar.small == NO_AVATAR
    assert not (storage.root / "users").exists() or not any((storage.root / "users").rglob("*.jpg"))


@pytest.mark.asyncio
@pytest.mark.parametrize("updates", [{"_id": "x"}, {"name": None}, {}])
async def test_rejected_profile_update_never_reaches_store(
    signed_up, make_service, db_session, tokens, monkeypatch, updates
):
    ctx = await _context(db_session, tokens, signed_up.token)
    svc = make_service(context=ctx)
    calls = []

    async def spy_update(*args, **kwargs):
        calls.append((args, kwargs))

    monkeypatch.setattr(svc.users, "update", spy_update)

    with pytest.raises(ValidationError):
        await svc.update_profile(updates)
    assert calls == []
