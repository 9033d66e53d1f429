"""Tests for provider selection and the mock providers."""

from types import SimpleNamespace

import pytest

from scenescribe.config import ModelsConfig, RunwayConfig, Settings
from scenescribe.schemas.generation import ScriptOutput
from scenescribe.schemas.project import ProjectConfig
from scenescribe.services.llm import get_adapter
from scenescribe.services.llm.base import strip_code_fence
from scenescribe.services.llm.ollama_adapter import OllamaAdapter
from scenescribe.services.llm.vertex_adapter import VertexAIAdapter
from scenescribe.services.text_generator import (
    LLMTextGenerator,
    MockTextGenerator,
    get_text_generator,
)
from scenescribe.services.video import get_video_provider
from scenescribe.services.video.mock import MockVideoProvider
from scenescribe.services.video.runway_adapter import RunwayVideoProvider


def test_model_prefix_routes_adapter():
    assert isinstance(get_adapter("ollama/llama3.1", Settings()), OllamaAdapter)
    assert isinstance(get_adapter("gemini-2.5-flash", Settings()), VertexAIAdapter)


def test_text_generator_selection():
    assert isinstance(get_text_generator(Settings(mock=True)), MockTextGenerator)
    live = get_text_generator(Settings(mock=False, models=ModelsConfig(text_llm="ollama/llama3.1")))
    assert isinstance(live, LLMTextGenerator)


@pytest.mark.asyncio
async def test_video_provider_selection():
    assert isinstance(get_video_provider(Settings(mock=True, runway=RunwayConfig(api_key="k"))), MockVideoProvider)
    assert isinstance(get_video_provider(Settings(mock=False)), MockVideoProvider)

    live = get_video_provider(Settings(mock=False, runway=RunwayConfig(api_key="k")))
    assert isinstance(live, RunwayVideoProvider)
    await live.close()


@pytest.mark.asyncio
async def test_mock_video_provider_succeeds_immediately():
    provider = MockVideoProvider()
    job_id = await provider.submit("prompt", "1920:1080", 8)
    result = await provider.poll(job_id)

    assert job_id.startswith("mock-")
    assert result.state == "success"
    assert result.media.video_url == f"/mock/videos/{job_id}.mp4"
    assert provider.submitted == [("prompt", "1920:1080", 8)]


@pytest.mark.asyncio
async def test_mock_text_generator_is_deterministic():
    generator = MockTextGenerator()
    first = await generator.segment("text", ProjectConfig())
    second = await generator.segment("text", ProjectConfig())
    assert first == second
    script = await generator.script(first.topics[0], "text", ProjectConfig())
    assert 2 <= len(script.scenes) <= 6


def test_strip_code_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('  {"a": 1} ') == '{"a": 1}'


class _RecordingChat:
    def __init__(self, content: str):
        self.content = content
        self.calls: list[dict] = []

    async def chat(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(message=SimpleNamespace(content=self.content))


@pytest.mark.asyncio
async def test_ollama_adapter_requests_json_with_schema_hint():
    adapter = OllamaAdapter("ollama/llama3.1")
    chat = _RecordingChat('```json\n{"narration": "Hi", "scenes": []}\n```')
    adapter._client = chat

    result = await adapter.complete_json("prompt", ScriptOutput, system_prompt="Be brief.")

    assert result.narration == "Hi"
    call = chat.calls[0]
    assert call["model"] == "llama3.1"
    assert call["format"] == "json"
    assert call["messages"][0]["content"].startswith("Be brief.")
    assert "narration" in call["messages"][0]["content"]
    assert call["messages"][1] == {"role": "user", "content": "prompt"}
