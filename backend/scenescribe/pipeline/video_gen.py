"""Per-topic video generation through a pluggable VideoProvider.

Each selected topic runs one render job:
- Build a deterministic prompt from the topic's script and project config
- Submit with a provider ratio and a clamped clip duration
- Poll at a fixed interval up to a bounded number of attempts
- Mark timeouts after max polls exceeded
- Downgrade a success without a video URL to failed

Jobs run as independent asyncio tasks bounded by a semaphore; a failing or
slow job never affects another. Topic updates are merged only after every
job resolves.

Usage:
    from scenescribe.pipeline.video_gen import generate_videos

    topics, status, jobs = await generate_videos(project.topics, project.config, provider)
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from scenescribe.errors import ProviderError
from scenescribe.orchestrator.state import aggregate_video_status
from scenescribe.orchestrator.topics import apply_topic_updates, select_topics
from scenescribe.schemas.project import (
    Media,
    ProjectConfig,
    ProjectStatus,
    TaskStatus,
    Tone,
    Topic,
    utcnow,
)
from scenescribe.services.video.base import VideoProvider

logger = logging.getLogger(__name__)


class VideoJob(BaseModel):
    """Lifecycle record of one topic's render job."""

    topic_id: str
    status: TaskStatus = "pending"
    job_id: Optional[str] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    media: Optional[Media] = None
    poll_count: int = 0


# ---------------------------------------------------------------------------
# Prompt and parameter mapping
# ---------------------------------------------------------------------------

def map_aspect_ratio(aspect_ratio: str) -> str:
    """Provider resolution for an aspect ratio; anything but 9:16 is landscape."""
    if aspect_ratio == "9:16":
        return "720:1280"
    return "1920:1080"


def map_duration(seconds: float) -> int:
    """Clamp a target duration to the provider's 4/6/8 second clip lengths."""
    if seconds <= 5:
        return 4
    if seconds <= 7:
        return 6
    return 8


def resolve_tone(topic: Topic, config: ProjectConfig) -> Tone:
    override = config.topic_overrides.get(topic.id)
    return topic.tone_override or (override.tone if override else None) or config.tone


def resolve_duration(topic: Topic, config: ProjectConfig) -> int:
    override = config.topic_overrides.get(topic.id)
    return (
        topic.duration_seconds
        or (override.duration_seconds if override else None)
        or config.target_duration_seconds
    )


def _scene_hints(topic: Topic, budget: int) -> str:
    hints = [
        f"Scene {s.order}: {s.scene_summary}. Visuals: {s.visual_description}. "
        f"Actions: {', '.join(s.actions)}. Props: {', '.join(s.props)}. "
        f"Overlays: {', '.join(s.overlay_text_suggestions)}."
        for s in topic.scenes or []
    ]
    return " ".join(hints)[:budget]


def build_prompt(topic: Topic, config: ProjectConfig, scene_hint_budget: int = 1200) -> str:
    """Deterministic text-to-video prompt for one topic."""
    parts = [
        f"Create a vivid, action-based explainer video topic: {topic.title}.",
        f"Tone: {resolve_tone(topic, config)}. Style: {config.style}. "
        f"Aspect ratio: {config.aspect_ratio}. Target duration ~{resolve_duration(topic, config)}s.",
    ]
    if topic.description:
        parts.append(f"Description: {topic.description}")
    if topic.key_points:
        parts.append(f"Key points: {'; '.join(topic.key_points)}")
    hints = _scene_hints(topic, scene_hint_budget)
    if hints:
        parts.append(f"Scenes: {hints}")
    parts.append("Use clear props and readable overlays. Avoid text-to-speech; visuals only.")
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Job lifecycle
# ---------------------------------------------------------------------------

def _transition(job: VideoJob, status: TaskStatus, error: Optional[str] = None) -> None:
    job.status = status
    if error is not None:
        job.error = error
    if status in ("ready", "failed"):
        job.completed_at = utcnow()

    if status == "failed":
        logger.warning("Topic %s: video %s (%s)", job.topic_id, status, job.error)
    else:
        logger.info("Topic %s: video %s", job.topic_id, status)


async def _poll_job(
    job: VideoJob,
    provider: VideoProvider,
    poll_interval: float,
    max_polls: int,
) -> None:
    """Poll until the job is terminal or max_polls is reached."""
    for poll_attempt in range(max_polls):
        job.poll_count = poll_attempt + 1
        try:
            result = await provider.poll(job.job_id)
        except ProviderError as e:
            logger.warning(
                "Topic %s: poll %d/%d failed: %s",
                job.topic_id, job.poll_count, max_polls, e,
            )
            result = None

        if result is not None and result.state == "success":
            _transition(job, "assembling")
            if result.media is None or not result.media.video_url:
                _transition(job, "failed", "Provider reported success without a video URL")
                return
            job.media = result.media
            _transition(job, "ready")
            return

        if result is not None and result.state == "failure":
            _transition(job, "failed", result.error or "Provider reported failure")
            return

        # Not done yet
        if poll_attempt < max_polls - 1:
            await asyncio.sleep(poll_interval)

    _transition(
        job,
        "failed",
        f"Timed out: job did not complete after {max_polls} polls "
        f"({max_polls * poll_interval:g} seconds)",
    )


async def _generate_video_for_topic(
    topic: Topic,
    config: ProjectConfig,
    provider: VideoProvider,
    *,
    poll_interval: float,
    max_polls: int,
    scene_hint_budget: int,
) -> VideoJob:
    job = VideoJob(topic_id=topic.id)
    prompt = build_prompt(topic, config, scene_hint_budget)
    ratio = map_aspect_ratio(config.aspect_ratio)
    duration = map_duration(resolve_duration(topic, config))

    job.started_at = utcnow()
    _transition(job, "generating")

    try:
        job.job_id = await provider.submit(prompt, ratio, duration)
    except ProviderError as e:
        _transition(job, "failed", f"Submission failed: {e}")
        return job

    if not job.job_id:
        _transition(job, "failed", "Provider returned no job id")
        return job

    logger.info("Topic %s: submitted job %s (ratio=%s, duration=%ds)", topic.id, job.job_id, ratio, duration)
    await _poll_job(job, provider, poll_interval, max_polls)
    return job


async def generate_videos(
    topics: Sequence[Topic],
    config: ProjectConfig,
    provider: VideoProvider,
    topic_ids: Optional[Iterable[str]] = None,
    *,
    concurrency: int = 4,
    poll_interval: float = 2.5,
    max_polls: int = 12,
    scene_hint_budget: int = 1200,
) -> tuple[list[Topic], ProjectStatus, list[VideoJob]]:
    """Render videos for the enabled (and optionally filtered) topics.

    Returns:
        (updated topics, aggregate project status, one VideoJob per selected topic)

    Raises:
        NoTopicsSelected: If the selection is empty.
    """
    selected = select_topics(topics, topic_ids)
    logger.info("Generating videos for %d topic(s)", len(selected))

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _run(topic: Topic) -> VideoJob:
        async with semaphore:
            try:
                return await _generate_video_for_topic(
                    topic, config, provider,
                    poll_interval=poll_interval,
                    max_polls=max_polls,
                    scene_hint_budget=scene_hint_budget,
                )
            except Exception as e:
                logger.exception("Topic %s: unexpected video generation error", topic.id)
                return VideoJob(
                    topic_id=topic.id,
                    status="failed",
                    error=f"Unexpected error: {e}",
                    completed_at=utcnow(),
                )

    jobs = list(await asyncio.gather(*[_run(t) for t in selected]))

    updates = {
        job.topic_id: {
            "video_status": job.status,
            "media": job.media,
            "video_error": job.error if job.status == "failed" else None,
        }
        for job in jobs
    }
    updated = apply_topic_updates(topics, updates)
    status = aggregate_video_status(updated)
    ready = sum(1 for j in jobs if j.status == "ready")
    logger.info("Video batch finished: %d/%d ready, project %s", ready, len(jobs), status)
    return updated, status, jobs
