import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from userhub.app.api.middleware.error_handler import register_error_handlers
from userhub.app.api.v1.router import api_router
from userhub.app.core.config import Settings, settings
from userhub.app.core.logging import setup_logging
from userhub.app.db import init_models
from userhub.app.db.session import engine
from userhub.app.services.media import MediaHostClient
from userhub.app.services.staging import StagingArea
from userhub.app.services.tokens import TokenService
from userhub.app.services.uploads import UploadOrchestrator

logger = logging.getLogger(__name__)


def init_app_state(
    app: FastAPI,
    config: Settings,
    media_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """Build the settings-driven services once and hang them on app.state."""
    app.state.settings = config
    app.state.token_service = TokenService(config)
    app.state.media_host = MediaHostClient(config, transport=media_transport)
    app.state.uploads = UploadOrchestrator(app.state.media_host)
    app.state.staging = StagingArea(config)


# --- LIFESPAN: logging, tables, services ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings)
    await init_models(engine)
    init_app_state(app, settings)
    logger.info("%s %s started (%s)", settings.PROJECT_NAME, settings.PROJECT_VERSION, settings.ENVIRONMENT)
    yield
    await app.state.media_host.aclose()
    await engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan
)

register_error_handlers(app)

# Set up CORS (outermost, so error responses carry the headers too);
# credentials are needed for the token cookies
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    return {"message": f"Welcome to the {settings.PROJECT_NAME} API"}
