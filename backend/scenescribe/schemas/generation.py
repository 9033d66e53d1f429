"""Pydantic schemas for structured output from the text-generation model.

These schemas are passed to the LLM adapters as response schemas for topic
segmentation and per-topic script writing.
"""

from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, Field


def _coerce_to_str(v: Any) -> str:
    """Coerce list/non-str values to comma-separated string.

    Some LLM providers (e.g. Ollama) return arrays for fields declared as
    string in the JSON schema.  This validator normalises them so Pydantic
    validation succeeds regardless of provider quirks.
    """
    if isinstance(v, list):
        return ", ".join(str(item) for item in v)
    return v


def _coerce_to_list(v: Any) -> list:
    """Wrap a bare string into a single-item list."""
    if v is None:
        return []
    if isinstance(v, str):
        return [v]
    return v


CoercedStr = Annotated[str, BeforeValidator(_coerce_to_str)]
CoercedList = Annotated[list[str], BeforeValidator(_coerce_to_list)]


class SpanDraft(BaseModel):
    start_char: int = Field(description="Start character offset into the source content")
    end_char: int = Field(description="End character offset (exclusive)")


class TopicDraft(BaseModel):
    """One topic proposed by the segmentation model."""

    id: Optional[str] = Field(default=None, description="Short identifier such as 't1'")
    title: CoercedStr = Field(description="Short, punchy topic title")
    description: CoercedStr = Field(default="", description="One or two sentences on what the topic covers")
    key_points: CoercedList = Field(default_factory=list, description="3-5 key points")
    source_span: Optional[SpanDraft] = Field(
        default=None,
        description="Character offsets of the part of the source this topic is based on",
    )


class StructureOutput(BaseModel):
    """Segmentation result: a summary plus ordered topics."""

    summary: CoercedStr = Field(default="", description="Two or three sentence summary of the content")
    topics: list[TopicDraft] = Field(default_factory=list, description="4-8 ordered topics")


class SceneDraft(BaseModel):
    """One scene of a topic script."""

    id: Optional[str] = None
    scene_summary: CoercedStr = Field(default="", description="What happens in the scene")
    visual_description: CoercedStr = Field(default="", description="What the viewer sees")
    actions: CoercedList = Field(default_factory=list, description="On-screen actions")
    props: CoercedList = Field(default_factory=list, description="Physical or graphic props")
    overlay_text_suggestions: CoercedList = Field(default_factory=list, description="Short overlay captions")
    camera_style: Optional[CoercedStr] = Field(default=None, description="Shot type and camera movement")
    estimated_duration_seconds: Optional[float] = Field(default=None, description="Approximate length in seconds")


class ScriptOutput(BaseModel):
    """Narration plus 2-6 ordered scenes for one topic."""

    narration: CoercedStr = Field(description="Voice-over narration for the whole topic")
    scenes: list[SceneDraft] = Field(description="2-6 scenes in playback order")
