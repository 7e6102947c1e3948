import hashlib
import logging

import pytest

from userhub.app.core.exceptions import UploadFailed
from userhub.app.services.media import RemoteAsset, sign_params


async def test_upload_returns_asset_and_removes_local_file(uploads, media_host, image_file):
    path = image_file()

    asset = await uploads.upload(path)

    assert asset.public_id in media_host.assets
    assert asset.url == media_host.assets[asset.public_id]
    assert not path.exists()


async def test_upload_failure_still_removes_local_file(uploads, media_host, image_file):
    media_host.upload_budget = 0
    path = image_file()

    with pytest.raises(UploadFailed) as excinfo:
        await uploads.upload(path)

    assert not path.exists()
    # the host's own error text stays out of the caller-facing message
    assert "upload rejected" not in excinfo.value.message
    assert "500" not in excinfo.value.message


@pytest.mark.parametrize("path", [None, ""])
async def test_upload_without_path(uploads, media_host, path):
    with pytest.raises(UploadFailed):
        await uploads.upload(path)
    assert media_host.uploads == 0


async def test_upload_unreadable_file(uploads, media_host, tmp_path):
    with pytest.raises(UploadFailed):
        await uploads.upload(tmp_path / "missing.png")
    assert media_host.uploads == 0


async def test_remove_is_idempotent(uploads, media_host, image_file, caplog):
    asset = await uploads.upload(image_file())

    with caplog.at_level(logging.INFO, logger="userhub.app.services.uploads"):
        await uploads.remove(asset.public_id)
        await uploads.remove(asset.public_id)

    assert asset.public_id not in media_host.assets
    assert media_host.destroyed == [asset.public_id, asset.public_id]
    assert "already gone" in caplog.text


async def test_remove_failure_is_logged_not_raised(uploads, media_host, image_file, caplog):
    asset = await uploads.upload(image_file())
    media_host.fail_destroy = True

    with caplog.at_level(logging.WARNING, logger="userhub.app.services.uploads"):
        await uploads.remove(asset.public_id)

    assert asset.public_id in media_host.assets
    records = [r for r in caplog.records if getattr(r, "event", None) == "media_rollback_failed"]
    assert len(records) == 1
    assert records[0].public_id == asset.public_id


async def test_remove_all_skips_missing_assets(uploads, media_host, image_file):
    first = await uploads.upload(image_file("one.png"))
    second = await uploads.upload(image_file("two.png"))

    await uploads.remove_all([first, None, second])

    assert media_host.assets == {}


async def test_remove_without_id_does_nothing(uploads, media_host):
    await uploads.remove(None)
    await uploads.remove("")
    assert media_host.destroyed == []


def test_sign_params_sorts_and_skips_empty_values():
    expected = hashlib.sha1(b"public_id=abc&timestamp=1315060510shhh").hexdigest()

    assert sign_params({"timestamp": "1315060510", "public_id": "abc", "folder": ""}, "shhh") == expected


async def test_destroy_request_is_signed(settings, media_client, monkeypatch):
    captured = {}

    async def fake_post(path, data, files=None):
        captured["path"] = path
        captured["data"] = data
        return {"result": "ok"}

    monkeypatch.setattr(media_client, "_post", fake_post)

    assert await media_client.destroy("abc") == "ok"
    data = captured["data"]
    assert captured["path"] == "image/destroy"
    assert data["api_key"] == settings.CLOUDINARY_API_KEY
    assert data["public_id"] == "abc"
    assert data["signature"] == sign_params(
        {"public_id": "abc", "timestamp": data["timestamp"]}, settings.CLOUDINARY_API_SECRET
    )


def test_remote_asset_defaults_to_image():
    assert RemoteAsset(url="u", public_id="p").resource_type == "image"
