# userhub/app/api/v1/endpoints/users.py
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, File, Form, Response, UploadFile, status

from userhub.app.api import deps
from userhub.app.core.config import Settings
from userhub.app.models.user import User
from userhub.app.schemas.user import (
    ApiResponse,
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    TokenPair,
    UpdateAccountRequest,
    UserResponse,
)
from userhub.app.services.accounts import AccountService
from userhub.app.services.staging import StagingArea

router = APIRouter()


def set_token_cookies(response: Response, pair: TokenPair, settings: Settings) -> None:
    response.set_cookie(
        deps.ACCESS_TOKEN_COOKIE,
        pair.access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )
    response.set_cookie(
        deps.REFRESH_TOKEN_COOKIE,
        pair.refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def clear_token_cookies(response: Response, settings: Settings) -> None:
    for name in (deps.ACCESS_TOKEN_COOKIE, deps.REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            name, httponly=True, secure=settings.COOKIE_SECURE, samesite="lax"
        )


# 1. REGISTER (multipart: fields + avatar + optional coverImage)
@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(
        fullname: Optional[str] = Form(None),
        email: Optional[str] = Form(None),
        username: Optional[str] = Form(None),
        password: Optional[str] = Form(None),
        avatar: Optional[UploadFile] = File(None),
        cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
        staging: StagingArea = Depends(deps.get_staging),
        accounts: AccountService = Depends(deps.get_account_service),
):
    avatar_path = cover_image_path = None
    try:
        avatar_path = await staging.stage(avatar)
        cover_image_path = await staging.stage(cover_image)
        user = await accounts.register(
            fullname=fullname,
            email=email,
            username=username,
            password=password,
            avatar_path=avatar_path,
            cover_image_path=cover_image_path,
        )
    finally:
        # The orchestrator deletes what it uploads; this catches early exits
        staging.discard(avatar_path, cover_image_path)

    return ApiResponse(
        status_code=status.HTTP_201_CREATED,
        data=UserResponse.model_validate(user),
        message="User registered successfully",
    )


# 2. LOGIN
@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(
        response: Response,
        credentials: LoginRequest = Depends(deps.parse_body(LoginRequest)),
        settings: Settings = Depends(deps.get_app_settings),
        accounts: AccountService = Depends(deps.get_account_service),
):
    user, pair = await accounts.login(
        email=credentials.email,
        username=credentials.username,
        password=credentials.password,
    )
    set_token_cookies(response, pair, settings)
    return ApiResponse(
        data=LoginResponse(
            user=UserResponse.model_validate(user),
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        ),
        message="User logged in successfully",
    )


# 3. REFRESH (cookie first, then JSON or form body)
@router.post("/refresh", response_model=ApiResponse[TokenPair])
async def refresh_access_token(
        response: Response,
        body: RefreshTokenRequest = Depends(deps.parse_body(RefreshTokenRequest)),
        refresh_cookie: Optional[str] = Cookie(None, alias=deps.REFRESH_TOKEN_COOKIE),
        settings: Settings = Depends(deps.get_app_settings),
        accounts: AccountService = Depends(deps.get_account_service),
):
    incoming = refresh_cookie or body.refresh_token
    pair = await accounts.refresh(incoming)
    set_token_cookies(response, pair, settings)
    return ApiResponse(data=pair, message="Access token refreshed")


# 4. LOGOUT
@router.post("/logout", response_model=ApiResponse[dict])
async def logout(
        response: Response,
        current_user: User = Depends(deps.get_current_user),
        settings: Settings = Depends(deps.get_app_settings),
        accounts: AccountService = Depends(deps.get_account_service),
):
    await accounts.logout(current_user)
    clear_token_cookies(response, settings)
    return ApiResponse(data={}, message="User logged out")


# 5. CHANGE PASSWORD
@router.post("/change-password", response_model=ApiResponse[dict])
async def change_current_password(
        passwords: ChangePasswordRequest = Depends(deps.parse_body(ChangePasswordRequest)),
        current_user: User = Depends(deps.get_current_user),
        accounts: AccountService = Depends(deps.get_account_service),
):
    await accounts.change_password(
        current_user, passwords.old_password, passwords.new_password
    )
    return ApiResponse(data={}, message="Password changed successfully")


# 6. CURRENT USER
@router.get("/current-user", response_model=ApiResponse[UserResponse])
async def get_current_user(
        current_user: User = Depends(deps.get_current_user),
        accounts: AccountService = Depends(deps.get_account_service),
):
    user = await accounts.get_current_user(current_user)
    return ApiResponse(data=UserResponse.model_validate(user), message="Current user details")


# 7. UPDATE ACCOUNT DETAILS
@router.patch("/update-account", response_model=ApiResponse[UserResponse])
async def update_account_details(
        details: UpdateAccountRequest = Depends(deps.parse_body(UpdateAccountRequest)),
        current_user: User = Depends(deps.get_current_user),
        accounts: AccountService = Depends(deps.get_account_service),
):
    user = await accounts.update_account_details(
        current_user, details.fullname, details.email
    )
    return ApiResponse(
        data=UserResponse.model_validate(user),
        message="Account details updated successfully",
    )


# 8. UPDATE AVATAR
@router.patch("/avatar", response_model=ApiResponse[UserResponse])
async def update_user_avatar(
        avatar: Optional[UploadFile] = File(None),
        current_user: User = Depends(deps.get_current_user),
        staging: StagingArea = Depends(deps.get_staging),
        accounts: AccountService = Depends(deps.get_account_service),
):
    avatar_path = None
    try:
        avatar_path = await staging.stage(avatar)
        user = await accounts.update_avatar(current_user, avatar_path)
    finally:
        staging.discard(avatar_path)
    return ApiResponse(data=UserResponse.model_validate(user), message="Avatar updated successfully")


# 9. UPDATE COVER IMAGE
@router.patch("/cover-image", response_model=ApiResponse[UserResponse])
async def update_user_cover_image(
        cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
        current_user: User = Depends(deps.get_current_user),
        staging: StagingArea = Depends(deps.get_staging),
        accounts: AccountService = Depends(deps.get_account_service),
):
    cover_image_path = None
    try:
        cover_image_path = await staging.stage(cover_image)
        user = await accounts.update_cover_image(current_user, cover_image_path)
    finally:
        staging.discard(cover_image_path)
    return ApiResponse(
        data=UserResponse.model_validate(user),
        message="Cover image updated successfully",
    )
