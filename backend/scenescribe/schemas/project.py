"""Pydantic models for projects, topics, scenes and media.

A Project embeds its Topics by value and each Topic embeds its Scenes, so a
project is always read and written as one document.
"""

import uuid
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field, PositiveFloat, PositiveInt, model_validator

ProjectStatus = Literal[
    "created",
    "structured",
    "scripts_ready",
    "videos_generating",
    "completed",
    "failed",
]
TaskStatus = Literal["pending", "generating", "assembling", "ready", "failed"]
InputType = Literal["url", "text"]
Platform = Literal["youtube", "tiktok", "generic"]
Tone = Literal["educational", "casual", "serious", "playful"]
Style = Literal["realistic", "semi-abstract", "diagram-heavy"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class SourceSpan(BaseModel):
    """Half-open character range [start_char, end_char) into cleaned_text."""

    start_char: int = Field(ge=0)
    end_char: int = Field(ge=0)


class Scene(BaseModel):
    """One shot or beat within a topic's script."""

    id: str
    order: int
    scene_summary: str = ""
    visual_description: str = ""
    actions: list[str] = Field(default_factory=list)
    props: list[str] = Field(default_factory=list)
    overlay_text_suggestions: list[str] = Field(default_factory=list)
    camera_style: Optional[str] = None
    estimated_duration_seconds: Optional[PositiveFloat] = None


class Media(BaseModel):
    """Rendered assets for a topic; every field is independently optional."""

    video_url: Optional[str] = None
    audio_url: Optional[str] = None
    subtitles_url: Optional[str] = None
    thumbnail_url: Optional[str] = None


class TopicOverride(BaseModel):
    tone: Optional[Tone] = None
    duration_seconds: Optional[PositiveInt] = None


class ProjectConfig(BaseModel):
    """Generation settings shared by every topic of a project."""

    platform: Platform = "youtube"
    aspect_ratio: str = "16:9"
    tone: Tone = "educational"
    style: Style = "semi-abstract"
    target_duration_seconds: PositiveInt = 60
    topic_overrides: dict[str, TopicOverride] = Field(default_factory=dict)


class Topic(BaseModel):
    """A segment of the source content scoped to become one short video.

    Only ``id`` is required so that partial topics can be sent as upsert
    updates; ``model_fields_set`` tells which fields an update carries.
    """

    id: str
    order: int = 0
    title: str = ""
    description: str = ""
    key_points: list[str] = Field(default_factory=list)
    enabled: bool = True
    source_span: Optional[SourceSpan] = None
    narration: Optional[str] = None
    scenes: Optional[list[Scene]] = None
    tone_override: Optional[Tone] = None
    duration_seconds: Optional[PositiveInt] = None
    script_status: TaskStatus = "pending"
    video_status: TaskStatus = "pending"
    media: Optional[Media] = None
    video_error: Optional[str] = None


class TopicMerge(BaseModel):
    """Fold topic ``from_id`` into topic ``into_id``."""

    from_id: str
    into_id: str


class Project(BaseModel):
    """A source document together with its topics and generation state."""

    id: str = Field(default_factory=new_id)
    input_type: InputType
    url: Optional[str] = None
    raw_text: Optional[str] = None
    cleaned_text: Optional[str] = None
    summary: Optional[str] = None
    topics: list[Topic] = Field(default_factory=list)
    config: ProjectConfig = Field(default_factory=ProjectConfig)
    status: ProjectStatus = "created"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    error: Optional[str] = None

    @model_validator(mode="after")
    def _check_provenance(self) -> "Project":
        if self.input_type == "text" and self.url:
            raise ValueError("url must be empty for text input")
        return self

    def source_text(self) -> str:
        return self.cleaned_text or self.raw_text or ""

    def find_topic(self, topic_id: str) -> Optional[Topic]:
        return next((t for t in self.topics if t.id == topic_id), None)
