"""Mock video provider for development and tests."""

import logging
import uuid

from scenescribe.schemas.project import Media
from scenescribe.services.video.base import JobPoll, VideoProvider

logger = logging.getLogger(__name__)


class MockVideoProvider(VideoProvider):
    """Every job succeeds on its first poll with static mock media."""

    def __init__(self, base_url: str = ""):
        self._base_url = base_url.rstrip("/")
        self.submitted: list[tuple[str, str, int]] = []

    async def submit(self, prompt: str, ratio: str, duration: int) -> str:
        job_id = f"mock-{uuid.uuid4().hex[:12]}"
        self.submitted.append((prompt, ratio, duration))
        logger.debug("Mock job %s submitted (ratio=%s, duration=%d)", job_id, ratio, duration)
        return job_id

    async def poll(self, job_id: str) -> JobPoll:
        return JobPoll(
            state="success",
            media=Media(
                video_url=f"{self._base_url}/mock/videos/{job_id}.mp4",
                thumbnail_url=f"{self._base_url}/mock/thumbnail.png",
                subtitles_url=f"{self._base_url}/mock/captions.vtt",
            ),
        )
