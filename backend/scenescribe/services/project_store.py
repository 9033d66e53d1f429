"""Project persistence behind a small document-store interface.

Projects are read and written whole. ``store`` merges top-level fields
shallowly (a given ``topics`` list replaces the old one) and always bumps
``updated_at``. Both lookups return ``None`` for unknown ids; raising
``ProjectNotFound`` is the orchestrator's job.

Backends:
- ``InMemoryProjectStore``: dict keyed by id, owned by the store instance.
- ``SqlProjectStore``: SQLAlchemy async ORM, one ``projects`` row holding
  the JSON document.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from scenescribe.config import Settings, settings as default_settings
from scenescribe.db import ProjectRecord, create_engine_and_sessionmaker, init_database
from scenescribe.errors import PersistenceError
from scenescribe.schemas.project import Project, utcnow

logger = logging.getLogger(__name__)

ProjectUpdate = Union[Project, dict[str, Any]]

# Fields a store update never rewrites
_IMMUTABLE_FIELDS = {"id", "created_at"}


def merge_project(existing: Project, updates: ProjectUpdate) -> Project:
    """Shallow-merge ``updates`` into ``existing`` and bump ``updated_at``."""
    if isinstance(updates, Project):
        changes = updates.model_dump(exclude=_IMMUTABLE_FIELDS)
    else:
        changes = {k: v for k, v in updates.items() if k not in _IMMUTABLE_FIELDS}

    data = existing.model_dump()
    data.update(changes)
    data["updated_at"] = utcnow()
    return Project.model_validate(data)


class ProjectStore(ABC):
    """Abstract project store. Construct once and pass by reference."""

    async def initialize(self) -> None:
        """Prepare the backend (create tables etc.). No-op by default."""

    async def close(self) -> None:
        """Release backend resources. No-op by default."""

    @abstractmethod
    async def load(self, project_id: str) -> Optional[Project]:
        ...

    @abstractmethod
    async def store(self, project_id: str, updates: ProjectUpdate) -> Optional[Project]:
        """Merge ``updates`` into the stored project.

        Returns:
            The merged project, or None if ``project_id`` is unknown.
        """
        ...

    @abstractmethod
    async def create(self, project: Project) -> Project:
        ...

    @abstractmethod
    async def list(self) -> list[Project]:
        """All projects, newest first."""
        ...


class InMemoryProjectStore(ProjectStore):
    """Process-local store. Returned projects are copies."""

    def __init__(self) -> None:
        self._projects: dict[str, Project] = {}

    async def load(self, project_id: str) -> Optional[Project]:
        project = self._projects.get(project_id)
        return project.model_copy(deep=True) if project else None

    async def store(self, project_id: str, updates: ProjectUpdate) -> Optional[Project]:
        existing = self._projects.get(project_id)
        if existing is None:
            return None
        merged = merge_project(existing, updates)
        self._projects[project_id] = merged
        return merged.model_copy(deep=True)

    async def create(self, project: Project) -> Project:
        self._projects[project.id] = project.model_copy(deep=True)
        return project

    async def list(self) -> list[Project]:
        projects = sorted(self._projects.values(), key=lambda p: p.created_at, reverse=True)
        return [p.model_copy(deep=True) for p in projects]


class SqlProjectStore(ProjectStore):
    """SQLAlchemy-backed store. Any driver error becomes ``PersistenceError``."""

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._engine = engine
        self._session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str) -> "SqlProjectStore":
        engine, session_factory = create_engine_and_sessionmaker(database_url)
        return cls(engine, session_factory)

    async def initialize(self) -> None:
        try:
            await init_database(self._engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to initialize database: {e}") from e

    async def close(self) -> None:
        await self._engine.dispose()

    async def load(self, project_id: str) -> Optional[Project]:
        try:
            async with self._session_factory() as session:
                record = await session.get(ProjectRecord, project_id)
                if record is None:
                    return None
                return Project.model_validate(record.document)
        except SQLAlchemyError as e:
            logger.error("Failed to load project %s: %s", project_id, e)
            raise PersistenceError(f"Failed to load project {project_id}") from e

    async def store(self, project_id: str, updates: ProjectUpdate) -> Optional[Project]:
        try:
            async with self._session_factory() as session:
                record = await session.get(ProjectRecord, project_id)
                if record is None:
                    return None
                merged = merge_project(Project.model_validate(record.document), updates)
                # Assign a fresh dict; in-place JSON mutation is not tracked
                record.document = merged.model_dump(mode="json")
                record.status = merged.status
                record.updated_at = merged.updated_at
                await session.commit()
                return merged
        except SQLAlchemyError as e:
            logger.error("Failed to store project %s: %s", project_id, e)
            raise PersistenceError(f"Failed to store project {project_id}") from e

    async def create(self, project: Project) -> Project:
        try:
            async with self._session_factory() as session:
                session.add(ProjectRecord(
                    id=project.id,
                    status=project.status,
                    document=project.model_dump(mode="json"),
                    created_at=project.created_at,
                    updated_at=project.updated_at,
                ))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to create project %s: %s", project.id, e)
            raise PersistenceError(f"Failed to create project {project.id}") from e
        return project

    async def list(self) -> list[Project]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ProjectRecord).order_by(ProjectRecord.created_at.desc())
                )
                return [Project.model_validate(r.document) for r in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Failed to list projects: %s", e)
            raise PersistenceError("Failed to list projects") from e


def create_store(app_settings: Optional[Settings] = None) -> ProjectStore:
    """Build the store selected by ``storage.backend``. Call ``initialize`` before use."""
    cfg = app_settings or default_settings
    if cfg.storage.backend == "sql":
        return SqlProjectStore.from_url(cfg.storage.database_url)
    return InMemoryProjectStore()
