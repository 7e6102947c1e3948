import asyncio

import pytest
from sqlalchemy.exc import SQLAlchemyError

from userhub.app.core.exceptions import Conflict, Internal, InvalidInput, NotFound, Unauthorized
from userhub.app.services.accounts import AccountService


@pytest.fixture
def accounts(db, token_service, uploads):
    return AccountService(db, token_service, uploads)


def failing_commit(db, monkeypatch):
    async def commit():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(db, "commit", commit)


async def test_register_commit_failure_removes_uploads(accounts, db, media_host, image_file, monkeypatch):
    failing_commit(db, monkeypatch)

    with pytest.raises(Internal):
        await accounts.register(
            fullname="Alice",
            email="a@x.com",
            username="alice",
            password="p",
            avatar_path=image_file("avatar.png"),
            cover_image_path=image_file("cover.png"),
        )

    assert media_host.uploads == 2
    assert media_host.assets == {}
    assert sorted(media_host.destroyed) == ["asset_1", "asset_2"]


async def test_register_conflict_checks_before_upload(accounts, user, media_host, image_file):
    with pytest.raises(Conflict):
        await accounts.register(
            fullname="Bob",
            email="BOB@example.com",
            username="someone-else",
            password="p",
            avatar_path=image_file(),
        )
    assert media_host.uploads == 0


async def test_replace_asset_commit_failure_keeps_previous(accounts, db, user, media_host, image_file, monkeypatch):
    failing_commit(db, monkeypatch)

    with pytest.raises(Internal):
        await accounts.update_avatar(user, image_file())

    assert media_host.destroyed == ["asset_1"]
    assert "seed" not in media_host.destroyed


async def test_update_avatar_removes_previous_asset(accounts, user, media_host, image_file):
    updated = await accounts.update_avatar(user, image_file())

    assert updated.avatar_public_id == "asset_1"
    assert media_host.destroyed == ["seed"]


async def test_login_returns_user_and_pair(accounts, user, token_service):
    logged_in, pair = await accounts.login(email=None, username="BOB", password="hunter2")

    assert logged_in.id == user.id
    assert logged_in.refresh_token == pair.refresh_token
    assert token_service.verify_access(pair.access_token) == user.id


async def test_login_errors(accounts, user):
    with pytest.raises(InvalidInput):
        await accounts.login(email="", username=None, password="hunter2")
    with pytest.raises(InvalidInput):
        await accounts.login(email="bob@example.com", username=None, password="")
    with pytest.raises(NotFound):
        await accounts.login(email="nobody@example.com", username=None, password="hunter2")
    with pytest.raises(Unauthorized):
        await accounts.login(email="bob@example.com", username=None, password="wrong")


async def test_refresh_requires_token(accounts):
    with pytest.raises(Unauthorized):
        await accounts.refresh("  ")


async def test_update_account_details_keeps_own_email(accounts, user):
    updated = await accounts.update_account_details(user, "Robert", "bob@example.com")

    assert updated.fullname == "Robert"
    assert updated.email == "bob@example.com"


async def test_register_cancelled_during_insert_removes_uploads(accounts, db, media_host, image_file, monkeypatch):
    async def commit():
        raise asyncio.CancelledError()

    monkeypatch.setattr(db, "commit", commit)

    with pytest.raises(asyncio.CancelledError):
        await accounts.register(
            fullname="Alice",
            email="a@x.com",
            username="alice",
            password="p",
            avatar_path=image_file("avatar.png"),
            cover_image_path=image_file("cover.png"),
        )

    assert media_host.assets == {}
    assert sorted(media_host.destroyed) == ["asset_1", "asset_2"]


async def test_replace_asset_cancelled_removes_new_upload(accounts, db, user, media_host, image_file, monkeypatch):
    async def commit():
        raise asyncio.CancelledError()

    monkeypatch.setattr(db, "commit", commit)

    with pytest.raises(asyncio.CancelledError):
        await accounts.update_cover_image(user, image_file("cover.png"))

    assert media_host.destroyed == ["asset_1"]
