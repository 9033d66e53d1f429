"""End-to-end tests for ProjectOrchestrator against in-memory fakes."""

import pytest

from conftest import SAMPLE_TEXT, make_topic
from scenescribe.errors import (
    IngestError,
    InvalidInput,
    NoTopicsSelected,
    PersistenceError,
    ProjectNotFound,
    TopicNotFound,
)
from scenescribe.orchestrator.pipeline import VIDEO_RESULTS_NOT_SAVED, ProjectOrchestrator
from scenescribe.pipeline.structure import FALLBACK_SUMMARY
from scenescribe.schemas.project import ProjectConfig, Topic, TopicMerge
from scenescribe.services.project_store import InMemoryProjectStore
from scenescribe.services.video.base import JobPoll


# ---------------------------------------------------------------------------
# create_project
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_from_text(orchestrator):
    project = await orchestrator.create_project("text", raw_text="  " + SAMPLE_TEXT + "\n\n")

    assert project.status == "structured"
    assert project.url is None
    assert project.cleaned_text == SAMPLE_TEXT
    assert [t.order for t in project.topics] == [1, 2, 3]
    assert all(t.script_status == "pending" and t.video_status == "pending" for t in project.topics)
    assert await orchestrator.get_project(project.id) == project


@pytest.mark.asyncio
async def test_create_from_url(orchestrator):
    project = await orchestrator.create_project("url", url="https://example.com/article")

    assert project.input_type == "url"
    assert project.url == "https://example.com/article"
    assert project.cleaned_text == SAMPLE_TEXT


@pytest.mark.asyncio
async def test_create_from_unreachable_url(orchestrator):
    with pytest.raises(IngestError):
        await orchestrator.create_project("url", url="https://example.com/gone")
    assert await orchestrator.list_projects() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("input_type,kwargs", [
    ("url", {}),
    ("text", {}),
    ("text", {"raw_text": "too short"}),
])
async def test_create_rejects_missing_or_short_input(orchestrator, input_type, kwargs):
    with pytest.raises(InvalidInput):
        await orchestrator.create_project(input_type, **kwargs)


@pytest.mark.asyncio
async def test_create_falls_back_when_segmentation_fails(orchestrator, text_generator):
    text_generator.fail_segment = True

    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)

    assert project.summary == FALLBACK_SUMMARY
    assert project.status == "structured"
    assert len(project.topics) >= 1


@pytest.mark.asyncio
async def test_create_keeps_config(orchestrator):
    config = ProjectConfig(platform="tiktok", aspect_ratio="9:16", tone="casual")
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT, config=config)
    assert project.config == config


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unknown_project_raises(orchestrator):
    with pytest.raises(ProjectNotFound):
        await orchestrator.get_project("nope")
    with pytest.raises(ProjectNotFound):
        await orchestrator.generate_scripts("nope")
    with pytest.raises(ProjectNotFound):
        await orchestrator.update_config("nope", ProjectConfig())


@pytest.mark.asyncio
async def test_list_projects(orchestrator):
    first = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)
    second = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)
    assert {p.id for p in await orchestrator.list_projects()} == {first.id, second.id}


# ---------------------------------------------------------------------------
# Topic edits and config
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_merge_then_upsert_renumbers(orchestrator):
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)
    t1, t2, _ = project.topics

    updated = await orchestrator.edit_topics(
        project.id,
        merge=TopicMerge(from_id="t2", into_id="t1"),
        topics=[Topic(id="t3", title="Renamed"), make_topic("t9", 0, title="New first")],
    )

    assert [t.id for t in updated.topics] == ["t9", "t1", "t3"]
    assert [t.order for t in updated.topics] == [1, 2, 3]
    merged = updated.find_topic("t1")
    assert merged.key_points == t1.key_points + t2.key_points
    assert updated.find_topic("t3").title == "Renamed"
    assert updated.find_topic("t3").description == project.topics[2].description
    assert updated.status == "structured"


@pytest.mark.asyncio
async def test_merge_with_unknown_id_is_a_no_op(orchestrator):
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)
    updated = await orchestrator.edit_topics(project.id, merge=TopicMerge(from_id="zz", into_id="t1"))
    assert [t.id for t in updated.topics] == ["t1", "t2", "t3"]


@pytest.mark.asyncio
async def test_set_topic_enabled(orchestrator):
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)

    updated = await orchestrator.set_topic_enabled(project.id, "t2", False)
    assert updated.find_topic("t2").enabled is False

    with pytest.raises(TopicNotFound):
        await orchestrator.set_topic_enabled(project.id, "missing", True)


@pytest.mark.asyncio
async def test_update_config_keeps_status(orchestrator):
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)
    updated = await orchestrator.update_config(project.id, ProjectConfig(style="diagram-heavy"))
    assert updated.config.style == "diagram-heavy"
    assert updated.status == "structured"


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_generate_scripts_sets_status(orchestrator, text_generator):
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)
    text_generator.fail_topics = {"t3"}

    updated = await orchestrator.generate_scripts(project.id)

    assert updated.status == "scripts_ready"
    assert all(t.script_status == "ready" for t in updated.topics)
    assert updated.find_topic("t1").narration == "Narration for Hook & Problem"
    assert updated.find_topic("t3").narration.startswith("Placeholder narration")


@pytest.mark.asyncio
async def test_generate_scripts_with_nothing_selected(orchestrator):
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)
    with pytest.raises(NoTopicsSelected):
        await orchestrator.generate_scripts(project.id, ["unknown"])


@pytest.mark.asyncio
async def test_generate_videos_partial_failure(orchestrator, video_provider):
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)
    await orchestrator.generate_scripts(project.id)
    video_provider.submit_errors = {"Takeaways"}

    updated = await orchestrator.generate_videos(project.id)

    assert [t.video_status for t in updated.topics] == ["ready", "ready", "failed"]
    assert updated.status == "videos_generating"
    assert updated.find_topic("t3").video_error

    status, media = await orchestrator.get_topic_video(project.id, "t1")
    assert status == "ready"
    assert media.video_url


@pytest.mark.asyncio
async def test_generate_videos_retry_completes_project(orchestrator, video_provider):
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)
    video_provider.submit_errors = {"Takeaways"}
    await orchestrator.generate_videos(project.id)

    video_provider.submit_errors = set()
    updated = await orchestrator.generate_videos(project.id, ["t3"])

    assert [t.video_status for t in updated.topics] == ["ready", "ready", "ready"]
    assert updated.status == "completed"
    assert updated.find_topic("t3").video_error is None


@pytest.mark.asyncio
async def test_generate_videos_times_out_after_max_polls(orchestrator, video_provider):
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)
    video_provider.outcomes = {"Core Concepts": [JobPoll(state="in_progress")]}

    updated = await orchestrator.generate_videos(project.id, ["t2"])

    assert updated.find_topic("t2").video_status == "failed"
    assert "Timed out" in updated.find_topic("t2").video_error
    assert video_provider.poll_counts["Core Concepts"] == 3
    assert updated.find_topic("t1").video_status == "pending"


@pytest.mark.asyncio
async def test_generate_videos_skips_disabled(orchestrator, video_provider):
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)
    await orchestrator.set_topic_enabled(project.id, "t2", False)

    updated = await orchestrator.generate_videos(project.id)

    assert updated.status == "completed"
    assert updated.find_topic("t2").video_status == "pending"
    assert "Core Concepts" not in {s["title"] for s in video_provider.submissions}


@pytest.mark.asyncio
async def test_get_topic_video_unknown_topic(orchestrator):
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)
    with pytest.raises(TopicNotFound):
        await orchestrator.get_topic_video(project.id, "missing")
    status, media = await orchestrator.get_topic_video(project.id, "t1")
    assert (status, media) == ("pending", None)


@pytest.mark.asyncio
async def test_topic_edits_cannot_set_generation_state(orchestrator):
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)

    updated = await orchestrator.edit_topics(
        project.id, topics=[Topic(id="t1", title="Edited", video_status="ready")],
    )

    assert updated.find_topic("t1").title == "Edited"
    assert updated.find_topic("t1").video_status == "pending"


class _FlakyStore(InMemoryProjectStore):
    """Fails the n-th ``store`` call (1-based)."""

    def __init__(self, fail_on: int):
        super().__init__()
        self.fail_on = fail_on
        self.calls = 0

    async def store(self, project_id, updates):
        self.calls += 1
        if self.calls == self.fail_on:
            raise PersistenceError("disk full")
        return await super().store(project_id, updates)


@pytest.mark.asyncio
async def test_unsaved_video_results_release_generating_topics(
    test_settings, text_generator, video_provider, content_source,
):
    store = _FlakyStore(fail_on=2)
    orchestrator = ProjectOrchestrator(
        store, text_generator, video_provider, content_source, app_settings=test_settings,
    )
    project = await orchestrator.create_project("text", raw_text=SAMPLE_TEXT)

    with pytest.raises(PersistenceError):
        await orchestrator.generate_videos(project.id, ["t1", "t2"])

    saved = await orchestrator.get_project(project.id)
    assert saved.find_topic("t1").video_status == "failed"
    assert saved.find_topic("t1").video_error == VIDEO_RESULTS_NOT_SAVED
    assert saved.find_topic("t2").video_status == "failed"
    assert saved.find_topic("t3").video_status == "pending"
    assert not any(t.video_status == "generating" for t in saved.topics)
