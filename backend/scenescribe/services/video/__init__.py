"""Video generation providers."""

from scenescribe.services.video.base import JobPoll, VideoProvider
from scenescribe.services.video.registry import get_video_provider

__all__ = ["JobPoll", "VideoProvider", "get_video_provider"]
