"""Pick the video provider for the current settings."""

import logging
from typing import Optional

from scenescribe.config import Settings, settings as default_settings
from scenescribe.services.video.base import VideoProvider

logger = logging.getLogger(__name__)


def get_video_provider(app_settings: Optional[Settings] = None) -> VideoProvider:
    """Runway when a key is configured and mock mode is off, otherwise the mock."""
    cfg = app_settings or default_settings

    if cfg.mock or not cfg.runway.api_key:
        from scenescribe.services.video.mock import MockVideoProvider

        logger.debug("Using MockVideoProvider (mock=%s, has_key=%s)", cfg.mock, bool(cfg.runway.api_key))
        return MockVideoProvider()

    from scenescribe.services.video.runway_adapter import RunwayVideoProvider
    from scenescribe.services.video.runway_client import RunwayClient

    client = RunwayClient(
        cfg.runway.api_url,
        cfg.runway.api_key,
        api_version=cfg.runway.api_version,
        model=cfg.runway.model,
        timeout=cfg.runway.request_timeout,
        max_attempts=cfg.pipeline.retry_max_attempts,
    )
    logger.debug("Using RunwayVideoProvider (%s, model=%s)", cfg.runway.api_url, cfg.runway.model)
    return RunwayVideoProvider(client)
