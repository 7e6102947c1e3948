# userhub/app/services/tokens.py
"""
Access/refresh token issuance, verification and rotation.

- Access tokens are checked statelessly (signature + expiry). They stay
  valid until they expire, even after logout.
- Refresh tokens must also match the single value stored on the user row.
  Rotation swaps that value with a compare-and-swap UPDATE, so a refresh
  token can be exchanged at most once.
"""
import logging
import secrets
from datetime import timedelta

from jose import ExpiredSignatureError, JWTError
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from userhub.app.core.config import Settings
from userhub.app.core.exceptions import InvalidToken, NotFound, RevokedToken
from userhub.app.models.user import User
from userhub.app.schemas.user import TokenPair
from userhub.app.security import jwt

logger = logging.getLogger(__name__)


class TokenService:

    def __init__(self, settings: Settings):
        self.access_secret = settings.ACCESS_TOKEN_SECRET
        self.refresh_secret = settings.REFRESH_TOKEN_SECRET
        self.algorithm = settings.ALGORITHM
        self.access_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        self.refresh_expires = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    def _mint(self, user: User) -> TokenPair:
        access_token = jwt.create_access_token(
            data={
                "sub": str(user.id),
                "username": user.username,
                "email": user.email,
                "fullname": user.fullname,
            },
            secret=self.access_secret,
            algorithm=self.algorithm,
            expires_delta=self.access_expires,
        )
        refresh_token = jwt.create_refresh_token(
            data={"sub": str(user.id)},
            secret=self.refresh_secret,
            algorithm=self.algorithm,
            expires_delta=self.refresh_expires,
        )
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def _decode(self, token: str, secret: str, expected_type: str, label: str) -> int:
        if not token:
            raise InvalidToken(f"Missing {label} token")
        try:
            payload = jwt.decode_token(token, secret, self.algorithm)
        except ExpiredSignatureError:
            raise InvalidToken(f"{label.capitalize()} token expired", details={"reason": "expired"})
        except JWTError:
            raise InvalidToken(f"Invalid {label} token", details={"reason": "malformed"})

        if payload.get("type") != expected_type:
            raise InvalidToken(f"Invalid {label} token", details={"reason": "wrong_type"})
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise InvalidToken(f"Invalid {label} token", details={"reason": "malformed"})

    async def issue(self, db: AsyncSession, user_id: int) -> TokenPair:
        """
        Mint a new pair and store the refresh token on the user,
        overwriting (and so invalidating) any previous one.
        """
        user = await db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")

        pair = self._mint(user)
        user.refresh_token = pair.refresh_token
        await db.commit()
        return pair

    def verify_access(self, token: str) -> int:
        """Stateless check; returns the user id."""
        return self._decode(token, self.access_secret, jwt.ACCESS_TOKEN_TYPE, "access")

    async def verify_refresh(self, db: AsyncSession, token: str) -> int:
        """
        Check signature/expiry, then that the token is the one stored for
        the user.

        Raises:
            InvalidToken: malformed, expired, wrong type, or unknown user
            RevokedToken: not the currently stored refresh token
        """
        user_id = self._decode(token, self.refresh_secret, jwt.REFRESH_TOKEN_TYPE, "refresh")
        user = await db.get(User, user_id)
        if user is None:
            raise InvalidToken("Invalid refresh token", details={"reason": "unknown_user"})

        if not user.refresh_token or not secrets.compare_digest(user.refresh_token, token):
            logger.warning("Refresh token mismatch for user %s", user_id)
            raise RevokedToken("Refresh token is expired or already used")
        return user_id

    async def rotate(self, db: AsyncSession, token: str) -> TokenPair:
        """
        Exchange a refresh token for a brand-new pair.

        The swap only happens if the stored token is still `token`, so two
        concurrent refreshes with the same token cannot both succeed.
        """
        user_id = await self.verify_refresh(db, token)
        user = await db.get(User, user_id)
        pair = self._mint(user)

        result = await db.execute(
            update(User)
            .where(User.id == user_id, User.refresh_token == token)
            .values(refresh_token=pair.refresh_token)
        )
        if result.rowcount != 1:
            await db.rollback()
            logger.warning("Refresh token for user %s was rotated concurrently", user_id)
            raise RevokedToken("Refresh token is expired or already used")

        await db.commit()
        return pair

    async def revoke(self, db: AsyncSession, user_id: int) -> None:
        """Clear the stored refresh token (logout)."""
        await db.execute(
            update(User).where(User.id == user_id).values(refresh_token=None)
        )
        await db.commit()
