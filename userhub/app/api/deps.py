# userhub/app/api/deps.py
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from fastapi import Cookie, Depends, Request
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from userhub.app.core.config import Settings
from userhub.app.core.exceptions import InvalidInput, InvalidToken, Unauthorized
from userhub.app.db.session import get_db
from userhub.app.models.user import User
from userhub.app.services.accounts import AccountService
from userhub.app.services.staging import StagingArea
from userhub.app.services.tokens import TokenService
from userhub.app.services.uploads import UploadOrchestrator

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

M = TypeVar("M", bound=BaseModel)

# auto_error=False: the token may come from the cookie instead of the header
reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl="/api/v1/users/login", auto_error=False
)


# Services are built once at startup (see main.init_app_state)
def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_uploads(request: Request) -> UploadOrchestrator:
    return request.app.state.uploads


def get_staging(request: Request) -> StagingArea:
    return request.app.state.staging


async def _read_body(request: Request) -> Dict[str, Any]:
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    if not await request.body():
        return {}
    try:
        payload = await request.json()
    except ValueError:
        raise InvalidInput("Request body is not valid JSON")
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be an object")
    return payload


def parse_body(model: Type[M]) -> Callable:
    """
    Dependency building `model` from a JSON or a form-encoded body.

    An absent body gives a model with every field unset, so missing values
    are reported by the account service like any other missing field.
    """
    async def dependency(request: Request) -> M:
        data = await _read_body(request)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
            raise InvalidInput("Invalid request", details={"fields": fields})

    return dependency


def get_account_service(
        db: AsyncSession = Depends(get_db),
        tokens: TokenService = Depends(get_token_service),
        uploads: UploadOrchestrator = Depends(get_uploads),
) -> AccountService:
    return AccountService(db, tokens, uploads)


async def get_current_user(
        db: AsyncSession = Depends(get_db),
        tokens: TokenService = Depends(get_token_service),
        bearer_token: Optional[str] = Depends(reusable_oauth2),
        cookie_token: Optional[str] = Cookie(None, alias=ACCESS_TOKEN_COOKIE),
) -> User:
    """Authenticate the caller from the accessToken cookie or a Bearer header."""
    token = cookie_token or bearer_token
    if not token:
        raise Unauthorized("Unauthorized request")

    user_id = tokens.verify_access(token)

    user = await db.get(User, user_id)
    if user is None:
        raise InvalidToken("Invalid access token")

    return user
