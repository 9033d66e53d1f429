"""State machine constants and transition logic for the project lifecycle.

The project status is coarse and is always derived from topic-level
progress. Per-topic ``script_status`` and ``video_status`` are the
authoritative fine-grained signals.
"""

from collections.abc import Sequence

from scenescribe.errors import InvalidInput
from scenescribe.schemas.project import ProjectStatus, Topic

# Project states in lifecycle order
PROJECT_STATES = {
    "created": "Project record exists, source not yet segmented",
    "structured": "Source segmented into topics",
    "scripts_ready": "At least one script generation request completed",
    "videos_generating": "Videos requested, at least one enabled topic not ready",
    "completed": "Every enabled topic has a ready video",
    "failed": "Project encountered an unrecoverable error",
}

# Stage transitions driven by orchestrator calls
STEP_TRANSITIONS = {
    "created": "structured",
    "structured": "scripts_ready",
    "scripts_ready": "videos_generating",
    "videos_generating": "completed",
}

TERMINAL_TASK_STATES = {"ready", "failed"}


def status_after_structure(topics: Sequence[Topic]) -> ProjectStatus:
    """Status for a freshly segmented project.

    Raises:
        InvalidInput: If segmentation produced no topics.
    """
    if not topics:
        raise InvalidInput("Topic segmentation produced no topics")
    return "structured"


def status_after_scripts(current: ProjectStatus) -> ProjectStatus:
    """Any completed script request advances the project to scripts_ready.

    This holds for partial requests that covered only some topics, and for
    re-scripting a project whose videos were already generated.
    """
    return "scripts_ready"


def status_after_edit(current: ProjectStatus) -> ProjectStatus:
    """Topic and config edits never move the status."""
    return current


def all_enabled_ready(topics: Sequence[Topic]) -> bool:
    """True if every enabled topic has a ready video. Disabled topics are ignored."""
    return all(t.video_status == "ready" for t in topics if t.enabled)


def aggregate_video_status(topics: Sequence[Topic]) -> ProjectStatus:
    """Aggregate status after a video request over the whole project.

    The check covers every enabled topic, not just the ones targeted by the
    request that just finished.
    """
    return "completed" if all_enabled_ready(topics) else "videos_generating"


def is_terminal(task_status: str) -> bool:
    return task_status in TERMINAL_TASK_STATES
