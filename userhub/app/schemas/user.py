# userhub/app/schemas/user.py
from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """JSON uses camelCase keys; Python code keeps snake_case attributes."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Server -> client: the user record WITHOUT password or refresh token
class UserResponse(CamelModel):
    id: int
    username: str
    email: str
    fullname: str
    avatar: str
    cover_image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class LoginResponse(CamelModel):
    user: UserResponse
    access_token: str
    refresh_token: str


# Request bodies. Fields are optional at the schema level so that missing
# values are reported by the account service as InvalidInput with a clear message.
class LoginRequest(CamelModel):
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class RefreshTokenRequest(CamelModel):
    refresh_token: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = None


class UpdateAccountRequest(CamelModel):
    fullname: Optional[str] = None
    email: Optional[str] = None


# Success envelope shared by every endpoint
class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    status_code: int = 200
    message: str = "Success"
    data: Optional[T] = None
