# userhub/app/models/user.py
from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from userhub.app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Unique constraints are the source of truth for uniqueness; the
    # pre-checks in the account service only give a friendlier error first.
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    fullname = Column(String(100), nullable=False)

    # Hash only, never the plaintext
    password = Column(String(255), nullable=False)

    # Remote assets on the media host: public URL plus the id needed to delete it
    avatar = Column(String(512), nullable=False)
    avatar_public_id = Column(String(255), nullable=True)
    cover_image = Column(String(512), nullable=True)
    cover_image_public_id = Column(String(255), nullable=True)

    # Single active refresh token; reissuing overwrites it, logout clears it
    refresh_token = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
