# userhub/app/db/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for the ORM models; the engine lives in db/session.py."""
