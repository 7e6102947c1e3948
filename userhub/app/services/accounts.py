# userhub/app/services/accounts.py
"""
Account use cases: register, login, refresh, logout, password change and
profile updates.

Each operation validates its input first, then talks to the store and the
media host. When a step fails after something was uploaded, the uploaded
assets are deleted before the original error is re-raised.
"""
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from userhub.app.core.exceptions import (
    AccountError,
    Conflict,
    Internal,
    InvalidInput,
    NotFound,
    Unauthorized,
    UploadFailed,
)
from userhub.app.models.user import User
from userhub.app.schemas.user import TokenPair
from userhub.app.security import hashing
from userhub.app.services.media import RemoteAsset
from userhub.app.services.tokens import TokenService
from userhub.app.services.uploads import UploadOrchestrator

logger = logging.getLogger(__name__)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _normalize(value: str) -> str:
    return value.strip().lower()


class AccountService:

    def __init__(self, db: AsyncSession, tokens: TokenService, uploads: UploadOrchestrator):
        self.db = db
        self.tokens = tokens
        self.uploads = uploads

    async def _find_by_identity(
        self, username: Optional[str] = None, email: Optional[str] = None
    ) -> Optional[User]:
        clauses = []
        if username:
            clauses.append(User.username == _normalize(username))
        if email:
            clauses.append(User.email == _normalize(email))
        if not clauses:
            return None
        result = await self.db.execute(select(User).where(or_(*clauses)))
        return result.scalars().first()

    async def _commit(self, conflict_message: str) -> None:
        """Commit, mapping constraint violations to Conflict and the rest to Internal."""
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info("Unique constraint violated: %s", e.orig)
            raise Conflict(conflict_message) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Database write failed")
            raise Internal("Something went wrong while saving the user") from e

    # ─────────────────────────────────────────────────────────────
    # Register
    # ─────────────────────────────────────────────────────────────
    async def register(
        self,
        fullname: Optional[str],
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
        avatar_path: Optional[Path],
        cover_image_path: Optional[Path] = None,
    ) -> User:
        if any(_blank(field) for field in (fullname, email, username, password)):
            raise InvalidInput("All fields are required")

        if await self._find_by_identity(username=username, email=email):
            raise Conflict("User with email or username already exists")

        if not avatar_path:
            raise InvalidInput("Avatar file is required")

        uploaded: List[RemoteAsset] = []
        try:
            avatar = await self.uploads.upload(avatar_path)
            uploaded.append(avatar)

            cover_image = None
            if cover_image_path:
                try:
                    cover_image = await self.uploads.upload(cover_image_path)
                    uploaded.append(cover_image)
                except UploadFailed:
                    logger.warning("Cover image upload failed; registering without one")

            user = User(
                fullname=fullname.strip(),
                email=_normalize(email),
                username=_normalize(username),
                password=hashing.get_password_hash(password),
                avatar=avatar.url,
                avatar_public_id=avatar.public_id,
                cover_image=cover_image.url if cover_image else None,
                cover_image_public_id=cover_image.public_id if cover_image else None,
            )
            self.db.add(user)
            await self._commit("User with email or username already exists")

            created = await self.db.get(User, user.id)
            if created is None:
                raise Internal("Something went wrong while registering the user")
            await self.db.refresh(created)
        except AccountError:
            await self.uploads.remove_all(uploaded)
            raise
        except Exception as e:
            await self.uploads.remove_all(uploaded)
            logger.exception("Registration failed after upload")
            raise Internal("Something went wrong while registering the user") from e
        except BaseException:
            # Cancelled mid-write: still clean up before propagating
            await self.uploads.remove_all(uploaded)
            raise

        logger.info("Registered user %s", created.id)
        return created

    # ─────────────────────────────────────────────────────────────
    # Login / refresh / logout
    # ─────────────────────────────────────────────────────────────
    async def login(
        self, email: Optional[str], username: Optional[str], password: Optional[str]
    ) -> Tuple[User, TokenPair]:
        if _blank(email) and _blank(username):
            raise InvalidInput("Username or email is required")
        if _blank(password):
            raise InvalidInput("Password is required")

        user = await self._find_by_identity(username=username, email=email)
        if user is None:
            raise NotFound("User does not exist")

        if not hashing.verify_password(password, user.password):
            raise Unauthorized("Invalid user credentials")

        pair = await self.tokens.issue(self.db, user.id)
        await self.db.refresh(user)
        logger.info("User %s logged in", user.id)
        return user, pair

    async def refresh(self, incoming_refresh_token: Optional[str]) -> TokenPair:
        if _blank(incoming_refresh_token):
            raise Unauthorized("Unauthorized request: no refresh token")
        return await self.tokens.rotate(self.db, incoming_refresh_token)

    async def logout(self, user: User) -> None:
        await self.tokens.revoke(self.db, user.id)
        logger.info("User %s logged out", user.id)

    # ─────────────────────────────────────────────────────────────
    # Profile
    # ─────────────────────────────────────────────────────────────
    async def change_password(
        self, user: User, old_password: Optional[str], new_password: Optional[str]
    ) -> None:
        if _blank(old_password) or _blank(new_password):
            raise InvalidInput("Old and new password are required")

        if not hashing.verify_password(old_password, user.password):
            raise Unauthorized("Invalid old password")

        user.password = hashing.get_password_hash(new_password)
        await self._commit("Could not change password")

    async def get_current_user(self, user: User) -> User:
        return user

    async def update_account_details(
        self, user: User, fullname: Optional[str], email: Optional[str]
    ) -> User:
        if _blank(fullname) or _blank(email):
            raise InvalidInput("Fullname and email are required")

        email = _normalize(email)
        existing = await self._find_by_identity(email=email)
        if existing is not None and existing.id != user.id:
            raise Conflict("Email is already in use")

        user.fullname = fullname.strip()
        user.email = email
        await self._commit("Email is already in use")
        await self.db.refresh(user)
        return user

    async def update_avatar(self, user: User, avatar_path: Optional[Path]) -> User:
        if not avatar_path:
            raise InvalidInput("Avatar file is missing")
        return await self._replace_asset(user, avatar_path, "avatar", "avatar_public_id")

    async def update_cover_image(self, user: User, cover_image_path: Optional[Path]) -> User:
        if not cover_image_path:
            raise InvalidInput("Cover image file is missing")
        return await self._replace_asset(
            user, cover_image_path, "cover_image", "cover_image_public_id"
        )

    async def _replace_asset(
        self, user: User, local_path: Path, url_field: str, id_field: str
    ) -> User:
        """
        Upload the new file, point the user at it, then drop the old asset.

        The old asset is only removed once the new one is committed, so a
        failed update never leaves the user without a working image.
        """
        asset = await self.uploads.upload(local_path)
        previous_public_id = getattr(user, id_field)

        setattr(user, url_field, asset.url)
        setattr(user, id_field, asset.public_id)
        try:
            await self._commit("Could not update user")
        except BaseException:
            await self.uploads.remove(asset.public_id)
            raise

        if previous_public_id and previous_public_id != asset.public_id:
            await self.uploads.remove(previous_public_id)

        await self.db.refresh(user)
        return user
