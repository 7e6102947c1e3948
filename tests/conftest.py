"""Shared pytest fixtures.

Every test gets its own SQLite file under tmp_path and its own in-memory
media host, served to the real httpx client through httpx.MockTransport.
"""
from typing import Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select

from userhub.app.core.config import Settings
from userhub.app.db import init_models
from userhub.app.db.session import create_engine_for, create_session_factory, get_db
from userhub.app.main import app, init_app_state
from userhub.app.models.user import User
from userhub.app.security import hashing
from userhub.app.services.media import MediaHostClient
from userhub.app.services.tokens import TokenService
from userhub.app.services.uploads import UploadOrchestrator


class FakeMediaHost:
    """In-memory media host speaking the upload/destroy endpoints."""

    def __init__(self):
        self.assets: Dict[str, str] = {}
        self.uploads = 0
        self.destroyed: List[str] = []
        # None: unlimited; otherwise number of uploads that still succeed
        self.upload_budget: Optional[int] = None
        self.fail_destroy = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/upload"):
            if self.upload_budget is not None:
                if self.upload_budget <= 0:
                    return httpx.Response(500, json={"error": {"message": "upload rejected"}})
                self.upload_budget -= 1
            self.uploads += 1
            public_id = f"asset_{self.uploads}"
            url = f"https://media.test/{public_id}.png"
            self.assets[public_id] = url
            return httpx.Response(
                200,
                json={"public_id": public_id, "secure_url": url, "url": url, "resource_type": "image"},
            )
        if path.endswith("/destroy"):
            if self.fail_destroy:
                return httpx.Response(503, json={"error": {"message": "unavailable"}})
            form = parse_qs(request.content.decode())
            public_id = form["public_id"][0]
            self.destroyed.append(public_id)
            result = "ok" if self.assets.pop(public_id, None) else "not found"
            return httpx.Response(200, json={"result": result})
        return httpx.Response(404, json={"error": {"message": "no route"}})


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        ACCESS_TOKEN_SECRET="testing-access-secret",
        REFRESH_TOKEN_SECRET="testing-refresh-secret",
        CLOUDINARY_CLOUD_NAME="demo",
        CLOUDINARY_API_KEY="key123",
        CLOUDINARY_API_SECRET="shhh",
        MEDIA_HOST_URL="https://media-host.test",
        UPLOAD_TEMP_DIR=str(tmp_path / "staging"),
        LOG_JSON=False,
    )


@pytest_asyncio.fixture
async def engine(settings):
    engine = create_engine_for(settings)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def media_host():
    return FakeMediaHost()


@pytest_asyncio.fixture
async def media_client(settings, media_host):
    client = MediaHostClient(settings, transport=httpx.MockTransport(media_host.handler))
    yield client
    await client.aclose()


@pytest.fixture
def uploads(media_client):
    return UploadOrchestrator(media_client)


@pytest.fixture
def token_service(settings):
    return TokenService(settings)


@pytest.fixture
def image_file(tmp_path):
    def make(name: str = "avatar.png", content: bytes = b"\x89PNG not really"):
        path = tmp_path / name
        path.write_bytes(content)
        return path
    return make


@pytest_asyncio.fixture
async def user(db):
    user = User(
        username="bob",
        email="bob@example.com",
        fullname="Bob Example",
        password=hashing.get_password_hash("hunter2"),
        avatar="https://media.test/seed.png",
        avatar_public_id="seed",
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def client(settings, session_factory, media_host):
    """HTTP client bound to the app, with the test database and media host."""
    init_app_state(app, settings, media_transport=httpx.MockTransport(media_host.handler))

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()
    await app.state.media_host.aclose()


@pytest.fixture
def fetch_user(session_factory):
    """Read a user with a fresh session, bypassing any cached state."""
    async def fetch(username: str) -> Optional[User]:
        async with session_factory() as session:
            result = await session.execute(select(User).where(User.username == username))
            return result.scalars().first()
    return fetch
