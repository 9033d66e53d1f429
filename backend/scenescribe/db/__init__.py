"""
Database module for SceneScribe.

Provides the async SQLAlchemy engine factory, the ORM models, and schema
initialization.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from scenescribe.db.engine import create_engine_and_sessionmaker
from scenescribe.db.models import Base, ProjectRecord

logger = logging.getLogger(__name__)


async def init_database(engine: AsyncEngine) -> None:
    """Create tables on first run."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug("Database schema ready (%s)", engine.url.render_as_string(hide_password=True))


__all__ = [
    "Base",
    "ProjectRecord",
    "create_engine_and_sessionmaker",
    "init_database",
]
