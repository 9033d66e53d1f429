"""Project orchestrator: the caller-facing operations over projects.

Coordinates ingestion, segmentation, script and video generation with:
- Read full project, compute replacement, persist full project
- Status transitions derived from topic-level progress
- Per-topic failure isolation inside generation batches
- One instance per process, shared by the API and built per CLI command
"""

import logging
from collections.abc import Iterable
from typing import Optional

from scenescribe.config import Settings, settings as default_settings
from scenescribe.errors import InvalidInput, PersistenceError, ProjectNotFound, TopicNotFound
from scenescribe.orchestrator.state import (
    aggregate_video_status,
    status_after_edit,
    status_after_scripts,
    status_after_structure,
)
from scenescribe.orchestrator.topics import (
    apply_topic_updates,
    editable_fields_only,
    merge_topics,
    renumber,
    select_topics,
    set_enabled,
    upsert_topics,
)
from scenescribe.pipeline.scripts import generate_scripts
from scenescribe.pipeline.structure import segment_source
from scenescribe.pipeline.video_gen import generate_videos
from scenescribe.schemas.project import (
    InputType,
    Media,
    Project,
    ProjectConfig,
    TaskStatus,
    Topic,
    TopicMerge,
)
from scenescribe.services.ingest import ContentSource, HttpContentSource, normalize_input_text
from scenescribe.services.project_store import ProjectStore, create_store
from scenescribe.services.text_generator import TextGenerator, get_text_generator
from scenescribe.services.video import VideoProvider, get_video_provider

logger = logging.getLogger(__name__)

VIDEO_RESULTS_NOT_SAVED = "Video results could not be saved"


class ProjectOrchestrator:
    """Runs every project operation against injected collaborators."""

    def __init__(
        self,
        store: ProjectStore,
        text_generator: TextGenerator,
        video_provider: VideoProvider,
        content_source: ContentSource,
        app_settings: Optional[Settings] = None,
    ) -> None:
        self.store = store
        self.text_generator = text_generator
        self.video_provider = video_provider
        self.content_source = content_source
        self.settings = app_settings or default_settings

    @classmethod
    def from_settings(cls, app_settings: Optional[Settings] = None) -> "ProjectOrchestrator":
        """Build an orchestrator with the collaborators selected by settings."""
        cfg = app_settings or default_settings
        return cls(
            store=create_store(cfg),
            text_generator=get_text_generator(cfg),
            video_provider=get_video_provider(cfg),
            content_source=HttpContentSource(max_chars=cfg.pipeline.max_source_chars),
            app_settings=cfg,
        )

    async def startup(self) -> None:
        await self.store.initialize()

    async def shutdown(self) -> None:
        await self.video_provider.close()
        close = getattr(self.content_source, "close", None)
        if close is not None:
            await close()
        await self.store.close()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require(self, project_id: str) -> Project:
        project = await self.store.load(project_id)
        if project is None:
            raise ProjectNotFound(project_id)
        return project

    async def _save(self, project_id: str, updates: dict) -> Project:
        project = await self.store.store(project_id, updates)
        if project is None:
            raise ProjectNotFound(project_id)
        return project

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create_project(
        self,
        input_type: InputType,
        url: Optional[str] = None,
        raw_text: Optional[str] = None,
        config: Optional[ProjectConfig] = None,
    ) -> Project:
        """Ingest a source, segment it into topics and persist a new project.

        Raises:
            InvalidInput: Missing or too-short source text, or no topics.
            IngestError: The URL could not be fetched.
        """
        pipeline_cfg = self.settings.pipeline
        config = config or ProjectConfig()

        if input_type == "url":
            if not url:
                raise InvalidInput("URL is required")
            raw_text = await self.content_source.fetch(url)
            cleaned = raw_text[:pipeline_cfg.max_source_chars]
        else:
            if not raw_text:
                raise InvalidInput("raw_text is required")
            url = None
            cleaned = normalize_input_text(raw_text, pipeline_cfg.max_source_chars)

        if len(cleaned) < pipeline_cfg.min_source_chars:
            raise InvalidInput("Content is too short to process.")

        structure = await segment_source(cleaned, config, self.text_generator)

        project = Project(
            input_type=input_type,
            url=url,
            raw_text=raw_text,
            cleaned_text=cleaned,
            summary=structure.summary,
            topics=structure.topics,
            config=config,
            status=status_after_structure(structure.topics),
        )
        project = await self.store.create(project)
        logger.info("Project %s created with %d topic(s)", project.id, len(project.topics))
        return project

    async def get_project(self, project_id: str) -> Project:
        return await self._require(project_id)

    async def list_projects(self) -> list[Project]:
        return await self.store.list()

    async def edit_topics(
        self,
        project_id: str,
        merge: Optional[TopicMerge] = None,
        topics: Optional[list[Topic]] = None,
    ) -> Project:
        """Apply a merge (if given), then upsert ``topics`` (if given).

        Order values are renumbered 1..N after either edit. Status is unchanged.
        """
        project = await self._require(project_id)
        updated = project.topics

        if merge is not None:
            updated = merge_topics(updated, merge.from_id, merge.into_id)
        if topics is not None:
            updated = renumber(upsert_topics(updated, editable_fields_only(topics)))

        return await self._save(project_id, {
            "topics": updated,
            "status": status_after_edit(project.status),
        })

    async def set_topic_enabled(self, project_id: str, topic_id: str, enabled: bool) -> Project:
        project = await self._require(project_id)
        if project.find_topic(topic_id) is None:
            raise TopicNotFound(project_id, topic_id)
        return await self._save(project_id, {"topics": set_enabled(project.topics, topic_id, enabled)})

    async def update_config(self, project_id: str, config: ProjectConfig) -> Project:
        project = await self._require(project_id)
        return await self._save(project_id, {
            "config": config,
            "status": status_after_edit(project.status),
        })

    async def generate_scripts(
        self,
        project_id: str,
        topic_ids: Optional[Iterable[str]] = None,
    ) -> Project:
        """Write scripts for the selected topics. Per-topic failures become placeholders.

        Raises:
            NoTopicsSelected: If no enabled topic matches the selection.
        """
        project = await self._require(project_id)
        pipeline_cfg = self.settings.pipeline
        topic_ids = list(topic_ids) if topic_ids is not None else None

        topics = await generate_scripts(
            project.topics,
            project.source_text(),
            project.config,
            self.text_generator,
            topic_ids,
            concurrency=pipeline_cfg.script_concurrency,
            source_window=pipeline_cfg.script_source_window,
        )
        updated = await self._save(project_id, {
            "topics": topics,
            "status": status_after_scripts(project.status),
        })
        logger.info("Project %s: scripts ready", project_id)
        return updated

    async def generate_videos(
        self,
        project_id: str,
        topic_ids: Optional[Iterable[str]] = None,
    ) -> Project:
        """Render videos for the selected topics. Each call starts new jobs.

        Selected topics are persisted as ``generating`` before any job starts
        so that status reads during the batch reflect progress.
        If the results cannot be saved, those topics are marked failed on a
        best-effort basis before the PersistenceError propagates.

        Raises:
            NoTopicsSelected: If no enabled topic matches the selection.
        """
        project = await self._require(project_id)
        pipeline_cfg = self.settings.pipeline
        topic_ids = list(topic_ids) if topic_ids is not None else None

        selected = select_topics(project.topics, topic_ids)
        in_flight = apply_topic_updates(
            project.topics,
            {t.id: {"video_status": "generating", "video_error": None} for t in selected},
        )
        await self._save(project_id, {"topics": in_flight, "status": "videos_generating"})

        topics, status, jobs = await generate_videos(
            in_flight,
            project.config,
            self.video_provider,
            [t.id for t in selected],
            concurrency=pipeline_cfg.video_gen_concurrency,
            poll_interval=pipeline_cfg.video_poll_interval,
            max_polls=pipeline_cfg.video_poll_max,
            scene_hint_budget=pipeline_cfg.scene_hint_char_budget,
        )
        try:
            updated = await self._save(project_id, {"topics": topics, "status": status})
        except PersistenceError:
            await self._release_in_flight(project_id, in_flight, [t.id for t in selected])
            raise
        failed = [j.topic_id for j in jobs if j.status == "failed"]
        if failed:
            logger.warning("Project %s: video generation failed for %s", project_id, ", ".join(failed))
        logger.info("Project %s: %s", project_id, status)
        return updated

    async def _release_in_flight(
        self, project_id: str, in_flight: list[Topic], topic_ids: list[str]
    ) -> None:
        """Mark topics left at ``generating`` as failed after results could not be saved."""
        topics = apply_topic_updates(
            in_flight,
            {tid: {"video_status": "failed", "video_error": VIDEO_RESULTS_NOT_SAVED, "media": None}
             for tid in topic_ids},
        )
        try:
            await self.store.store(project_id, {"topics": topics, "status": aggregate_video_status(topics)})
        except PersistenceError:
            logger.exception("Project %s: could not release in-flight topics %s", project_id, topic_ids)

    async def get_topic_video(
        self, project_id: str, topic_id: str
    ) -> tuple[TaskStatus, Optional[Media]]:
        project = await self._require(project_id)
        topic = project.find_topic(topic_id)
        if topic is None:
            raise TopicNotFound(project_id, topic_id)
        return topic.video_status, topic.media
