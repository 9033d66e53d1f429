"""Runway video provider for the pipeline.

Normalizes the Runway task payload so the video orchestrator only deals
with submit → poll → media. The payload shape has varied across API
versions, so media extraction walks a fixed fallback chain.
"""

import logging
from typing import Any, Optional

import httpx

from scenescribe.errors import ProviderError
from scenescribe.schemas.project import Media
from scenescribe.services.video.base import JobPoll, JobState, VideoProvider
from scenescribe.services.video.runway_client import RunwayClient

logger = logging.getLogger(__name__)

# Status normalization sets
_COMPLETED_STATUSES = frozenset({"succeeded", "completed"})
_FAILED_STATUSES = frozenset({"failed", "cancelled"})


# ---------------------------------------------------------------------------
# Payload normalization
# ---------------------------------------------------------------------------

def _dig(payload: Any, *path: Any) -> Any:
    """Walk nested dicts/lists, returning None on any miss."""
    node = payload
    for key in path:
        if isinstance(key, int):
            if not isinstance(node, list) or len(node) <= key:
                return None
            node = node[key]
        else:
            if not isinstance(node, dict):
                return None
            node = node.get(key)
    return node


def _first_str(*candidates: Any) -> Optional[str]:
    for value in candidates:
        if isinstance(value, str) and value:
            return value
    return None


def extract_media(payload: dict) -> Media:
    """Map a task payload to canonical media.

    Video URL lookup order: ``video.url``, ``assets.video``,
    ``output[0].url`` (or a bare string ``output[0]``), ``asset_url``,
    ``video_url``. Thumbnail: ``assets.thumbnail``, ``thumbnail_url``.
    """
    first_output = _dig(payload, "output", 0)
    video_url = _first_str(
        _dig(payload, "video", "url"),
        _dig(payload, "assets", "video"),
        _dig(first_output, "url"),
        first_output,
        _dig(payload, "asset_url"),
        _dig(payload, "video_url"),
    )
    thumbnail_url = _first_str(
        _dig(payload, "assets", "thumbnail"),
        _dig(payload, "thumbnail_url"),
    )
    return Media(video_url=video_url, thumbnail_url=thumbnail_url)


def normalize_status(payload: dict) -> JobState:
    """Collapse a task payload into in_progress / success / failure.

    A payload that already carries a video reference counts as success
    regardless of its status string.
    """
    raw = str(payload.get("status") or "").lower()
    if raw in _COMPLETED_STATUSES or extract_media(payload).video_url:
        return "success"
    if raw in _FAILED_STATUSES:
        return "failure"
    return "in_progress"


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------

class RunwayVideoProvider(VideoProvider):
    """VideoProvider backed by Runway text-to-video tasks."""

    def __init__(self, client: RunwayClient):
        self._client = client

    async def submit(self, prompt: str, ratio: str, duration: int) -> str:
        try:
            task_id = await self._client.create_text_to_video(prompt, ratio, duration)
        except httpx.HTTPStatusError as e:
            logger.error("Runway create failed: HTTP %d %s", e.response.status_code, e.response.text[:500])
            raise ProviderError(f"Runway create failed: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("Runway create failed: %s", e)
            raise ProviderError(f"Runway create failed: {e}") from e

        if not task_id:
            raise ProviderError("Runway response missing task id")
        return task_id

    async def poll(self, job_id: str) -> JobPoll:
        try:
            payload = await self._client.get_task(job_id)
        except httpx.HTTPError as e:
            raise ProviderError(f"Runway poll failed for {job_id}: {e}") from e

        state = normalize_status(payload)
        if state == "success":
            return JobPoll(state=state, media=extract_media(payload))
        if state == "failure":
            reason = payload.get("failure") or payload.get("error") or "Runway reported failure"
            logger.error("Runway task %s failed: %s", job_id, reason)
            return JobPoll(state=state, error=str(reason))
        return JobPoll(state=state)

    async def close(self) -> None:
        await self._client.close()
