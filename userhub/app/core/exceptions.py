# userhub/app/core/exceptions.py
"""
Error taxonomy for account operations.

    AccountError (base)
    ├── InvalidInput         400  missing / empty / malformed input
    ├── Unauthorized         401  bad credentials or token
    │   ├── InvalidToken     401  malformed, bad signature, expired, wrong type
    │   └── RevokedToken     401  well-formed but not the one currently stored
    ├── NotFound             404  no such user
    ├── Conflict             409  username or email already taken
    ├── UploadFailed         400  media host transfer failed
    └── Internal             500  unexpected persistence failure

Every error maps to a stable status code and a message that is safe to show;
upstream error detail is kept out of `message`.
"""
from typing import Optional

from fastapi import status


class AccountError(Exception):
    """Base exception for all account errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict:
        return {
            "success": False,
            "statusCode": self.status_code,
            "errorType": self.error_type,
            "message": self.message,
            "details": self.details,
        }


class InvalidInput(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(AccountError):
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidToken(Unauthorized):
    """Token could not be decoded: bad signature, expired, or wrong type."""


class RevokedToken(Unauthorized):
    """
    Token decoded fine but is not the refresh token stored for the user.

    Either a newer pair was issued (the token was already rotated) or the
    user logged out.
    """


class NotFound(AccountError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(AccountError):
    status_code = status.HTTP_409_CONFLICT


class UploadFailed(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST


class Internal(AccountError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class MediaHostError(Exception):
    """Raised by the media host client; never leaves the upload orchestrator."""
