import pytest

from userhub.app.core.config import Settings


def make_settings(**overrides):
    return Settings(_env_file=None, **overrides)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgres://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("postgresql://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("postgresql+asyncpg://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("sqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
        ("sqlite+aiosqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
    ],
)
def test_database_url_normalized(url, expected):
    assert make_settings(DATABASE_URL=url).DATABASE_URL == expected


def test_cors_origins_parsed():
    settings = make_settings(CORS_ORIGINS=" http://a.test , ,http://b.test ")
    assert settings.BACKEND_CORS_ORIGINS == ["http://a.test", "http://b.test"]


def test_empty_cors_origins_is_not_wildcard():
    assert make_settings(CORS_ORIGINS="").BACKEND_CORS_ORIGINS == []


@pytest.mark.parametrize("environment, secure", [("production", True), ("Production", True), ("development", False)])
def test_cookie_secure_follows_environment(environment, secure):
    assert make_settings(ENVIRONMENT=environment).COOKIE_SECURE is secure


def test_allowed_image_extensions():
    settings = make_settings(ALLOWED_IMAGE_EXTENSIONS=".PNG, .jpg,")
    assert settings.allowed_image_extensions == [".png", ".jpg"]
