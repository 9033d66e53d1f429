"""Runway API client for text-to-video generation.

Provides:
- Task creation (POST /v1/text_to_video)
- Task retrieval (GET /v1/tasks/{id})

Transient failures (429, 5xx, transport errors) are retried with tenacity.
Everything else propagates as ``httpx.HTTPStatusError``; the adapter layer
turns it into ``ProviderError``.

Usage:
    client = RunwayClient(api_url, api_key)
    task_id = await client.create_text_to_video(prompt, "1920:1080", 8)
    payload = await client.get_task(task_id)
"""

import logging
from typing import Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)


def _is_retriable(exc: BaseException) -> bool:
    """Return True only for transient errors worth retrying (429, 5xx, transport)."""
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        return code == 429 or code >= 500
    return isinstance(exc, httpx.TransportError)


class RunwayClient:
    """Async client for the Runway developer API."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        *,
        api_version: str = "2024-11-06",
        model: str = "veo3.1",
        timeout: float = 60.0,
        max_attempts: int = 3,
        backoff: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.api_version = api_version
        self.model = model
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._backoff = backoff
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "X-Runway-Version": self.api_version,
                },
                timeout=httpx.Timeout(self._timeout, connect=15.0),
                transport=self._transport,
            )
        return self._client

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._backoff, min=self._backoff, max=30),
            retry=retry_if_exception(_is_retriable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        async for attempt in self._retrying():
            with attempt:
                response = await self.client.request(method, path, **kwargs)
                logger.debug("%s %s%s: HTTP %d", method, self.api_url, path, response.status_code)
                response.raise_for_status()
        return response.json()

    async def create_text_to_video(self, prompt: str, ratio: str, duration: int) -> Optional[str]:
        """Create a text-to-video task.

        Returns the task id, or None if the response carried none.
        """
        logger.info(
            "POST %s/v1/text_to_video model=%s ratio=%s duration=%d",
            self.api_url, self.model, ratio, duration,
        )
        data = await self._request(
            "POST",
            "/v1/text_to_video",
            json={
                "model": self.model,
                "promptText": prompt,
                "ratio": ratio,
                "duration": duration,
                "audio": False,
            },
        )
        task_id = data.get("id") if isinstance(data, dict) else None
        logger.info("  task_id: %s", task_id)
        return task_id

    async def get_task(self, task_id: str) -> dict:
        """Fetch the raw task payload."""
        data = await self._request("GET", f"/v1/tasks/{task_id}")
        return data if isinstance(data, dict) else {}

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
