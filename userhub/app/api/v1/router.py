# userhub/app/api/v1/router.py
from fastapi import APIRouter
from userhub.app.api.v1.endpoints import healthcheck, users

api_router = APIRouter()
api_router.include_router(healthcheck.router, prefix="/healthcheck", tags=["healthcheck"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
