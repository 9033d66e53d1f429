"""Topic segmentation with placeholder fallback."""

import logging

from scenescribe.errors import ProviderError
from scenescribe.orchestrator.topics import renumber
from scenescribe.schemas.project import ProjectConfig
from scenescribe.services.text_generator import StructureResult, TextGenerator, canned_topics

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "Could not auto-generate summary. Please review topics manually."


async def segment_source(
    text: str,
    config: ProjectConfig,
    generator: TextGenerator,
) -> StructureResult:
    """Segment ``text`` into topics; a provider failure yields placeholder topics.

    Returned topics are renumbered 1..N with pending script and video status.
    """
    try:
        result = await generator.segment(text, config)
    except ProviderError as e:
        logger.warning("Segmentation failed, using placeholder topics: %s", e)
        result = StructureResult(summary=FALLBACK_SUMMARY, topics=canned_topics())

    topics = [
        t.model_copy(update={"script_status": "pending", "video_status": "pending"})
        for t in sorted(result.topics, key=lambda t: t.order)
    ]
    return StructureResult(summary=result.summary, topics=renumber(topics))
