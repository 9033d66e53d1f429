"""Pydantic schemas for SceneScribe documents and LLM structured output."""

from scenescribe.schemas.project import (
    Media,
    Project,
    ProjectConfig,
    ProjectStatus,
    Scene,
    SourceSpan,
    TaskStatus,
    Topic,
    TopicMerge,
    TopicOverride,
)

__all__ = [
    "Media",
    "Project",
    "ProjectConfig",
    "ProjectStatus",
    "Scene",
    "SourceSpan",
    "TaskStatus",
    "Topic",
    "TopicMerge",
    "TopicOverride",
]
