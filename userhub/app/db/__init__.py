import logging

from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


async def init_models(bind: AsyncEngine, drop: bool = False) -> None:
    """Create all tables (optionally dropping them first) on the given engine."""
    from userhub.app.db.base import Base
    from userhub.app import models  # noqa: F401  registers the tables

    try:
        async with bind.begin() as conn:
            if drop:
                await conn.run_sync(Base.metadata.drop_all)
            logger.info("Creating database tables")
            await conn.run_sync(Base.metadata.create_all)
    except Exception:
        logger.exception("Could not create database tables")
        raise
