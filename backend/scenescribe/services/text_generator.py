"""Text-generation collaborator: topic segmentation and per-topic scripts.

``LLMTextGenerator`` drives any ``LLMAdapter`` with structured output
schemas. ``MockTextGenerator`` returns deterministic canned content for
mock mode and local development.

Both raise ``ProviderError`` on failure; callers decide how to substitute
placeholders.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel

from scenescribe.config import Settings, settings as default_settings
from scenescribe.errors import ProviderError
from scenescribe.schemas.generation import ScriptOutput, StructureOutput
from scenescribe.schemas.project import ProjectConfig, Scene, SourceSpan, Topic, new_id
from scenescribe.services.llm import LLMAdapter

logger = logging.getLogger(__name__)

MIN_SCENES = 2
MAX_SCENES = 6


class StructureResult(BaseModel):
    summary: str
    topics: list[Topic]


class ScriptResult(BaseModel):
    narration: str
    scenes: list[Scene]


class TextGenerator(ABC):
    """Interface the orchestrators use to talk to a text-generation provider."""

    @abstractmethod
    async def segment(self, text: str, config: ProjectConfig) -> StructureResult:
        """Split source text into a summary and ordered topics."""
        ...

    @abstractmethod
    async def script(self, topic: Topic, text_slice: str, config: ProjectConfig) -> ScriptResult:
        """Write narration and 2-6 ordered scenes for one topic."""
        ...


# ---------------------------------------------------------------------------
# Canned content (mock mode and segmentation fallback)
# ---------------------------------------------------------------------------

_CANNED_TOPICS = [
    ("t1", "Hook & Problem", "Why the source content matters and the pain it addresses.",
     ["Context", "Pain point", "Why now"]),
    ("t2", "Core Concepts", "Break down the main ideas with actions, props, and diagrams.",
     ["Concept 1", "Concept 2", "Concept 3"]),
    ("t3", "Takeaways", "Summarize with calls-to-action and next steps.",
     ["Key takeaway", "Next action", "Reminder"]),
]


def canned_topics() -> list[Topic]:
    return [
        Topic(id=topic_id, order=order, title=title, description=description, key_points=list(points))
        for order, (topic_id, title, description, points) in enumerate(_CANNED_TOPICS, start=1)
    ]


def canned_scenes(topic_id: str, label: str) -> list[Scene]:
    return [
        Scene(
            id=f"{topic_id}-s1",
            order=1,
            scene_summary=f"{label} intro",
            visual_description=f"Host in studio introduces {label} with a prop table and bold overlays.",
            actions=["Camera dolly-in to host", "Host gestures to prop table"],
            props=["prop table", "whiteboard", "overlay cards"],
            overlay_text_suggestions=["Problem", "Why now"],
            camera_style="Medium close-up",
            estimated_duration_seconds=8,
        ),
        Scene(
            id=f"{topic_id}-s2",
            order=2,
            scene_summary=f"{label} demo",
            visual_description=f"Animated diagram and overlay labels walking through {label}.",
            actions=["On-screen arrows animate", "Highlight key numbers"],
            props=["diagram", "floating labels"],
            overlay_text_suggestions=["Step 1", "Step 2"],
            camera_style="Screen capture + overlay",
            estimated_duration_seconds=10,
        ),
    ]


class MockTextGenerator(TextGenerator):
    """Deterministic generator used when ``settings.mock`` is on."""

    async def segment(self, text: str, config: ProjectConfig) -> StructureResult:
        return StructureResult(
            summary="High-level summary of the provided content, generated in mock mode for reliability.",
            topics=canned_topics(),
        )

    async def script(self, topic: Topic, text_slice: str, config: ProjectConfig) -> ScriptResult:
        return ScriptResult(
            narration=(
                f"Script for {topic.title}: Explain the key points with vivid props and actions."
            ),
            scenes=canned_scenes(topic.id, topic.title),
        )


# ---------------------------------------------------------------------------
# LLM-backed generator
# ---------------------------------------------------------------------------

STRUCTURE_SYSTEM_PROMPT = (
    "You segment content into crisp, ordered topics suitable for short video explainers. "
    "Respond ONLY with JSON in the requested shape."
)

SCRIPT_SYSTEM_PROMPT = (
    "You write narration and scene breakdowns for short, vivid explainer videos. "
    "Use props, actions, and overlays. Respond with JSON only."
)


def _unique_topic_id(proposed: Optional[str], idx: int, seen: set[str]) -> str:
    """Model-proposed id unless empty or already used; then t{idx}, then a fresh id."""
    for candidate in (proposed, f"t{idx}"):
        if candidate and candidate not in seen:
            break
    else:
        candidate = new_id()
    seen.add(candidate)
    return candidate


class LLMTextGenerator(TextGenerator):
    """Text generator backed by an LLM adapter with structured output."""

    def __init__(
        self,
        adapter: LLMAdapter,
        *,
        structure_window: int = 8000,
        max_retries: int = 3,
    ) -> None:
        self._adapter = adapter
        self._structure_window = structure_window
        self._max_retries = max_retries

    async def segment(self, text: str, config: ProjectConfig) -> StructureResult:
        prompt = json.dumps({
            "content": text[:self._structure_window],
            "config": config.model_dump(mode="json"),
            "instructions": (
                "Return summary plus 4-8 topics with id, title, description, "
                "key_points (3-5), and source_span start_char/end_char offsets."
            ),
        })
        try:
            output = await self._adapter.complete_json(
                prompt,
                StructureOutput,
                temperature=0.4,
                system_prompt=STRUCTURE_SYSTEM_PROMPT,
                attempts=self._max_retries,
            )
        except Exception as e:
            raise ProviderError(f"Topic segmentation failed: {e}") from e

        topics = []
        seen: set[str] = set()
        for idx, draft in enumerate(output.topics, start=1):
            topic_id = _unique_topic_id(draft.id, idx, seen)
            span = None
            if draft.source_span and draft.source_span.end_char > draft.source_span.start_char >= 0:
                span = SourceSpan(
                    start_char=draft.source_span.start_char,
                    end_char=draft.source_span.end_char,
                )
            topics.append(Topic(
                id=topic_id,
                order=idx,
                title=draft.title,
                description=draft.description,
                key_points=draft.key_points,
                source_span=span,
            ))
        return StructureResult(summary=output.summary, topics=topics)

    async def script(self, topic: Topic, text_slice: str, config: ProjectConfig) -> ScriptResult:
        prompt = json.dumps({
            "topic": topic.model_dump(
                mode="json",
                include={"id", "title", "description", "key_points", "tone_override"},
            ),
            "source": text_slice,
            "config": config.model_dump(mode="json"),
            "request": (
                "Return narration plus 2-6 scenes with scene_summary, visual_description, "
                "actions, props, overlay_text_suggestions, camera_style, estimated_duration_seconds."
            ),
        })
        try:
            output = await self._adapter.complete_json(
                prompt,
                ScriptOutput,
                temperature=0.5,
                system_prompt=SCRIPT_SYSTEM_PROMPT,
                attempts=self._max_retries,
            )
        except Exception as e:
            raise ProviderError(f"Script generation failed for topic {topic.id}: {e}") from e

        if len(output.scenes) < MIN_SCENES:
            raise ProviderError(
                f"Script for topic {topic.id} has {len(output.scenes)} scene(s), need at least {MIN_SCENES}"
            )
        if len(output.scenes) > MAX_SCENES:
            logger.warning(
                "Topic %s: model returned %d scenes, keeping the first %d",
                topic.id, len(output.scenes), MAX_SCENES,
            )

        scenes = [
            Scene(
                id=draft.id or f"{topic.id}-s{idx}",
                order=idx,
                scene_summary=draft.scene_summary,
                visual_description=draft.visual_description,
                actions=draft.actions,
                props=draft.props,
                overlay_text_suggestions=draft.overlay_text_suggestions,
                camera_style=draft.camera_style,
                estimated_duration_seconds=(
                    draft.estimated_duration_seconds
                    if draft.estimated_duration_seconds and draft.estimated_duration_seconds > 0
                    else None
                ),
            )
            for idx, draft in enumerate(output.scenes[:MAX_SCENES], start=1)
        ]
        return ScriptResult(narration=output.narration, scenes=scenes)


def get_text_generator(app_settings: Optional[Settings] = None) -> TextGenerator:
    """Mock generator in mock mode, otherwise an LLM generator for ``models.text_llm``."""
    cfg = app_settings or default_settings
    if cfg.mock:
        return MockTextGenerator()

    from scenescribe.services.llm import get_adapter

    return LLMTextGenerator(
        get_adapter(cfg.models.text_llm, cfg),
        structure_window=cfg.pipeline.structure_source_window,
        max_retries=cfg.pipeline.retry_max_attempts,
    )
