# userhub/app/security/jwt.py
"""
Signed token helpers.

Both token kinds carry:
- sub:  user id (string)
- type: "access" or "refresh", checked on decode so one kind can never be
        used in place of the other
- iat / exp
- jti:  random id, so two tokens minted in the same second still differ
"""
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import jwt

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _encode(
    data: Dict[str, Any],
    secret: str,
    algorithm: str,
    expires_delta: timedelta,
    token_type: str,
) -> str:
    now = datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode.update({
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "jti": secrets.token_urlsafe(16),
    })
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def create_access_token(
    data: Dict[str, Any], secret: str, algorithm: str, expires_delta: timedelta
) -> str:
    return _encode(data, secret, algorithm, expires_delta, ACCESS_TOKEN_TYPE)


def create_refresh_token(
    data: Dict[str, Any], secret: str, algorithm: str, expires_delta: timedelta
) -> str:
    return _encode(data, secret, algorithm, expires_delta, REFRESH_TOKEN_TYPE)


def decode_token(token: str, secret: str, algorithm: str) -> Dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    Raises:
        jose.JWTError (ExpiredSignatureError for expired tokens)
    """
    return jwt.decode(token, secret, algorithms=[algorithm])
