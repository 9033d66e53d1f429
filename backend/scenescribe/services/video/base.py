"""Abstract video provider interface.

A provider accepts a text prompt and returns an opaque job id, then reports
job progress when polled. Implementations must raise ``ProviderError`` for
failures the orchestrator should treat as a failed submission or poll.
"""

from abc import ABC, abstractmethod
from typing import Literal, Optional

from pydantic import BaseModel

from scenescribe.schemas.project import Media

JobState = Literal["in_progress", "success", "failure"]


class JobPoll(BaseModel):
    """One observation of a provider job."""

    state: JobState
    media: Optional[Media] = None
    error: Optional[str] = None


class VideoProvider(ABC):

    @abstractmethod
    async def submit(self, prompt: str, ratio: str, duration: int) -> str:
        """Start a render job and return its id."""
        ...

    @abstractmethod
    async def poll(self, job_id: str) -> JobPoll:
        ...

    async def close(self) -> None:
        """Release network resources. No-op by default."""
