"""Per-topic script generation.

Each selected topic gets narration plus 2-6 scenes from the text generator.
Topics run concurrently (bounded by a semaphore) and never share state; a
failing topic gets a placeholder script instead of failing the batch.

Usage:
    from scenescribe.pipeline.scripts import generate_scripts

    topics = await generate_scripts(project.topics, project.source_text(), project.config, generator)
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from typing import Any, Optional

from scenescribe.errors import ProviderError
from scenescribe.orchestrator.topics import apply_topic_updates, select_topics
from scenescribe.schemas.project import ProjectConfig, Scene, Topic
from scenescribe.services.text_generator import TextGenerator

logger = logging.getLogger(__name__)


def source_slice(topic: Topic, source_text: str, window: int) -> str:
    """Text the script is grounded on: the topic's span, else a bounded prefix."""
    if topic.source_span is not None:
        sliced = source_text[topic.source_span.start_char:topic.source_span.end_char]
        if sliced.strip():
            return sliced
    return source_text[:window]


def placeholder_scenes(topic: Topic) -> list[Scene]:
    label = topic.title or topic.id
    return [
        Scene(
            id=f"{topic.id}-s1",
            order=1,
            scene_summary=f"[Placeholder] {label} intro",
            visual_description=f"Title card introducing {label}.",
            overlay_text_suggestions=[label],
        ),
        Scene(
            id=f"{topic.id}-s2",
            order=2,
            scene_summary=f"[Placeholder] {label} key points",
            visual_description="Bulleted overlay of the topic's key points.",
            overlay_text_suggestions=list(topic.key_points[:3]),
        ),
    ]


def placeholder_script(topic: Topic) -> dict[str, Any]:
    return {
        "narration": f"Placeholder narration for {topic.title}.",
        "scenes": placeholder_scenes(topic),
    }


async def _script_for_topic(
    topic: Topic,
    source_text: str,
    config: ProjectConfig,
    generator: TextGenerator,
    window: int,
) -> dict[str, Any]:
    try:
        result = await generator.script(topic, source_slice(topic, source_text, window), config)
        logger.info("Topic %s: script ready (%d scenes)", topic.id, len(result.scenes))
        return {"narration": result.narration, "scenes": result.scenes}
    except ProviderError as e:
        logger.warning("Topic %s: script generation failed, using placeholder: %s", topic.id, e)
        return placeholder_script(topic)
    except Exception:
        logger.exception("Topic %s: unexpected script generation error, using placeholder", topic.id)
        return placeholder_script(topic)


async def generate_scripts(
    topics: Sequence[Topic],
    source_text: str,
    config: ProjectConfig,
    generator: TextGenerator,
    topic_ids: Optional[Iterable[str]] = None,
    *,
    concurrency: int = 4,
    source_window: int = 2000,
) -> list[Topic]:
    """Generate scripts for the enabled (and optionally filtered) topics.

    Results are merged into the full topic list after every unit resolves.
    Topics outside the selection are returned unchanged.

    Raises:
        NoTopicsSelected: If the selection is empty.
    """
    selected = select_topics(topics, topic_ids)
    logger.info("Generating scripts for %d topic(s)", len(selected))

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _run(topic: Topic) -> tuple[str, dict[str, Any]]:
        async with semaphore:
            update = await _script_for_topic(topic, source_text, config, generator, source_window)
        update["script_status"] = "ready"
        return topic.id, update

    results = await asyncio.gather(*[_run(t) for t in selected])
    return apply_topic_updates(topics, dict(results))
