# userhub/app/api/v1/endpoints/healthcheck.py
from fastapi import APIRouter

from userhub.app.schemas.user import ApiResponse

router = APIRouter()


@router.get("", response_model=ApiResponse[dict])
async def healthcheck():
    return ApiResponse(data={"status": "ok"}, message="Health check passed")
