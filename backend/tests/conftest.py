"""Shared fakes and fixtures for the SceneScribe test suite."""

from typing import Optional, Union

import pytest

from scenescribe.config import PipelineConfig, Settings
from scenescribe.errors import IngestError, ProviderError
from scenescribe.orchestrator.pipeline import ProjectOrchestrator
from scenescribe.schemas.project import Media, ProjectConfig, Topic
from scenescribe.services.ingest import ContentSource
from scenescribe.services.project_store import InMemoryProjectStore
from scenescribe.services.text_generator import (
    MockTextGenerator,
    ScriptResult,
    StructureResult,
    TextGenerator,
    canned_scenes,
)
from scenescribe.services.video.base import JobPoll, VideoProvider

SAMPLE_TEXT = (
    "Photosynthesis converts light into chemical energy. Chlorophyll absorbs "
    "red and blue light. The Calvin cycle fixes carbon dioxide into sugar."
)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeTextGenerator(TextGenerator):
    """Canned output with per-topic failure injection and call recording."""

    def __init__(
        self,
        topics: Optional[list[Topic]] = None,
        fail_segment: bool = False,
        fail_topics: Optional[set[str]] = None,
    ):
        self.topics = topics
        self.fail_segment = fail_segment
        self.fail_topics = fail_topics or set()
        self.script_calls: list[tuple[str, str]] = []

    async def segment(self, text: str, config: ProjectConfig) -> StructureResult:
        if self.fail_segment:
            raise ProviderError("segmentation unavailable")
        if self.topics is not None:
            return StructureResult(summary="fake summary", topics=self.topics)
        return await MockTextGenerator().segment(text, config)

    async def script(self, topic: Topic, text_slice: str, config: ProjectConfig) -> ScriptResult:
        self.script_calls.append((topic.id, text_slice))
        if topic.id in self.fail_topics:
            raise ProviderError(f"script failed for {topic.id}")
        return ScriptResult(
            narration=f"Narration for {topic.title}",
            scenes=canned_scenes(topic.id, topic.title),
        )


Outcome = Union[JobPoll, Exception]


def ready_poll(url: str = "https://cdn.example/video.mp4") -> JobPoll:
    return JobPoll(state="success", media=Media(video_url=url, thumbnail_url="https://cdn.example/thumb.png"))


class FakeVideoProvider(VideoProvider):
    """Scripted provider keyed by topic title.

    ``outcomes[title]`` is the sequence of poll results (or exceptions to
    raise) for that topic's job; the last entry repeats. Titles in
    ``submit_errors`` fail at submission. Unlisted titles succeed on the
    first poll.
    """

    def __init__(
        self,
        outcomes: Optional[dict[str, list[Outcome]]] = None,
        submit_errors: Optional[set[str]] = None,
    ):
        self.outcomes = outcomes or {}
        self.submit_errors = submit_errors or set()
        self.submissions: list[dict] = []
        self.poll_counts: dict[str, int] = {}
        self._jobs: dict[str, str] = {}

    def _title_for(self, prompt: str) -> str:
        head = prompt.split("explainer video topic: ", 1)[1]
        return head.split(". Tone:", 1)[0]

    async def submit(self, prompt: str, ratio: str, duration: int) -> str:
        title = self._title_for(prompt)
        if title in self.submit_errors:
            raise ProviderError(f"submit rejected for {title}")
        job_id = f"job-{len(self.submissions) + 1}"
        self.submissions.append({"title": title, "prompt": prompt, "ratio": ratio, "duration": duration})
        self._jobs[job_id] = title
        return job_id

    async def poll(self, job_id: str) -> JobPoll:
        title = self._jobs[job_id]
        count = self.poll_counts.get(title, 0)
        self.poll_counts[title] = count + 1
        script = self.outcomes.get(title) or [ready_poll(f"https://cdn.example/{job_id}.mp4")]
        outcome = script[min(count, len(script) - 1)]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeContentSource(ContentSource):
    def __init__(self, pages: Optional[dict[str, str]] = None):
        self.pages = pages or {}

    async def fetch(self, url: str) -> str:
        if url not in self.pages:
            raise IngestError("Failed to fetch URL: 404")
        return self.pages[url]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        mock=True,
        pipeline=PipelineConfig(video_poll_interval=0, video_poll_max=3),
    )


@pytest.fixture
def text_generator() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest.fixture
def video_provider() -> FakeVideoProvider:
    return FakeVideoProvider()


@pytest.fixture
def content_source() -> FakeContentSource:
    return FakeContentSource({"https://example.com/article": SAMPLE_TEXT})


@pytest.fixture
def orchestrator(test_settings, text_generator, video_provider, content_source) -> ProjectOrchestrator:
    return ProjectOrchestrator(
        store=InMemoryProjectStore(),
        text_generator=text_generator,
        video_provider=video_provider,
        content_source=content_source,
        app_settings=test_settings,
    )


def make_topic(topic_id: str, order: int, **fields) -> Topic:
    fields.setdefault("title", f"Topic {topic_id}")
    return Topic(id=topic_id, order=order, **fields)
