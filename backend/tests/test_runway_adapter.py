"""Tests for the Runway client, payload normalization and provider."""

import json

import httpx
import pytest

from scenescribe.errors import ProviderError
from scenescribe.services.video.runway_adapter import (
    RunwayVideoProvider,
    extract_media,
    normalize_status,
)
from scenescribe.services.video.runway_client import RunwayClient


def _client(handler, **kwargs) -> RunwayClient:
    return RunwayClient(
        "https://api.runway.test/",
        "secret",
        backoff=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# extract_media / normalize_status
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("payload,expected", [
    ({"video": {"url": "v1"}}, "v1"),
    ({"assets": {"video": "v2"}}, "v2"),
    ({"output": [{"url": "v3"}]}, "v3"),
    ({"output": ["v4"]}, "v4"),
    ({"asset_url": "v5"}, "v5"),
    ({"video_url": "v6"}, "v6"),
    ({"video": {"url": "first"}, "video_url": "last"}, "first"),
    ({"output": []}, None),
    ({}, None),
])
def test_extract_media_video_fallbacks(payload, expected):
    assert extract_media(payload).video_url == expected


def test_extract_media_thumbnail_fallbacks():
    assert extract_media({"assets": {"thumbnail": "t1"}}).thumbnail_url == "t1"
    assert extract_media({"thumbnail_url": "t2"}).thumbnail_url == "t2"
    assert extract_media({"video_url": "v"}).thumbnail_url is None


@pytest.mark.parametrize("payload,expected", [
    ({"status": "SUCCEEDED"}, "success"),
    ({"status": "completed"}, "success"),
    ({"status": "RUNNING", "asset_url": "v"}, "success"),
    ({"status": "FAILED"}, "failure"),
    ({"status": "CANCELLED"}, "failure"),
    ({"status": "PENDING"}, "in_progress"),
    ({}, "in_progress"),
])
def test_normalize_status(payload, expected):
    assert normalize_status(payload) == expected


# ---------------------------------------------------------------------------
# RunwayClient over MockTransport
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_sends_expected_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "task-1"})

    client = _client(handler, model="veo3.1", api_version="2024-11-06")
    try:
        task_id = await client.create_text_to_video("a prompt", "1920:1080", 8)
    finally:
        await client.close()

    assert task_id == "task-1"
    assert seen["url"] == "https://api.runway.test/v1/text_to_video"
    assert seen["headers"]["authorization"] == "Bearer secret"
    assert seen["headers"]["x-runway-version"] == "2024-11-06"
    assert seen["body"] == {
        "model": "veo3.1",
        "promptText": "a prompt",
        "ratio": "1920:1080",
        "duration": 8,
        "audio": False,
    }


@pytest.mark.asyncio
async def test_client_retries_transient_status():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if len(calls) < 3:
            return httpx.Response(503 if len(calls) == 1 else 429)
        return httpx.Response(200, json={"id": "task-1", "status": "RUNNING"})

    client = _client(handler, max_attempts=3)
    try:
        payload = await client.get_task("task-1")
    finally:
        await client.close()

    assert payload["status"] == "RUNNING"
    assert calls == ["/v1/tasks/task-1"] * 3


@pytest.mark.asyncio
async def test_client_does_not_retry_client_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(400, json={"error": "bad ratio"})

    client = _client(handler, max_attempts=3)
    try:
        with pytest.raises(httpx.HTTPStatusError):
            await client.create_text_to_video("p", "bad", 8)
    finally:
        await client.close()
    assert len(calls) == 1


# ---------------------------------------------------------------------------
# RunwayVideoProvider
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_provider_submit_errors_become_provider_errors():
    provider = RunwayVideoProvider(_client(lambda r: httpx.Response(401, json={"error": "nope"})))
    try:
        with pytest.raises(ProviderError, match="401"):
            await provider.submit("p", "1920:1080", 8)
    finally:
        await provider.close()


@pytest.mark.asyncio
async def test_provider_submit_without_id_is_error():
    provider = RunwayVideoProvider(_client(lambda r: httpx.Response(200, json={"status": "PENDING"})))
    try:
        with pytest.raises(ProviderError, match="missing task id"):
            await provider.submit("p", "1920:1080", 8)
    finally:
        await provider.close()


@pytest.mark.asyncio
async def test_provider_poll_maps_payloads():
    payloads = {
        "/v1/tasks/done": {"status": "SUCCEEDED", "output": ["https://cdn/v.mp4"]},
        "/v1/tasks/bad": {"status": "FAILED", "failure": "moderation"},
        "/v1/tasks/wait": {"status": "RUNNING"},
    }
    provider = RunwayVideoProvider(_client(lambda r: httpx.Response(200, json=payloads[r.url.path])))
    try:
        done = await provider.poll("done")
        bad = await provider.poll("bad")
        wait = await provider.poll("wait")
    finally:
        await provider.close()

    assert done.state == "success"
    assert done.media.video_url == "https://cdn/v.mp4"
    assert (bad.state, bad.error) == ("failure", "moderation")
    assert wait.state == "in_progress"


@pytest.mark.asyncio
async def test_provider_poll_transport_error_is_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    provider = RunwayVideoProvider(_client(handler, max_attempts=2))
    try:
        with pytest.raises(ProviderError):
            await provider.poll("task-1")
    finally:
        await provider.close()
