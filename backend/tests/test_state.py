"""Tests for project status rules."""

import pytest

from conftest import make_topic
from scenescribe.errors import InvalidInput
from scenescribe.orchestrator.state import (
    aggregate_video_status,
    all_enabled_ready,
    is_terminal,
    status_after_edit,
    status_after_scripts,
    status_after_structure,
)


def test_structure_requires_topics():
    assert status_after_structure([make_topic("t1", 1)]) == "structured"
    with pytest.raises(InvalidInput):
        status_after_structure([])


@pytest.mark.parametrize("current", ["structured", "scripts_ready", "videos_generating", "completed"])
def test_scripts_always_land_on_scripts_ready(current):
    assert status_after_scripts(current) == "scripts_ready"


def test_edits_keep_status():
    assert status_after_edit("videos_generating") == "videos_generating"


def test_aggregate_ignores_disabled_topics():
    topics = [
        make_topic("t1", 1, video_status="ready"),
        make_topic("t2", 2, video_status="failed", enabled=False),
    ]
    assert all_enabled_ready(topics)
    assert aggregate_video_status(topics) == "completed"


def test_aggregate_pending_or_failed_keeps_generating():
    topics = [
        make_topic("t1", 1, video_status="ready"),
        make_topic("t2", 2, video_status="pending"),
    ]
    assert aggregate_video_status(topics) == "videos_generating"
    topics[1] = topics[1].model_copy(update={"video_status": "failed"})
    assert aggregate_video_status(topics) == "videos_generating"


def test_terminal_task_states():
    assert is_terminal("ready")
    assert is_terminal("failed")
    assert not is_terminal("generating")
