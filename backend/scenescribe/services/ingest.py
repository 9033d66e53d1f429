"""Source ingestion: fetch a URL or take pasted text and produce cleaned text.

Cleaning is deliberately lightweight: strip script/style blocks and tags,
decode a handful of common entities, collapse whitespace, and cap length.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from scenescribe.errors import IngestError

logger = logging.getLogger(__name__)

MAX_CHAR_LENGTH = 20000

_SCRIPT_RE = re.compile(r"<script[\s\S]*?</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style[\s\S]*?</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")

_ENTITIES = (
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
)


def clean_html_to_text(html: str, max_chars: int = MAX_CHAR_LENGTH) -> str:
    """Reduce an HTML document to a single line of readable text."""
    text = _STYLE_RE.sub("", _SCRIPT_RE.sub("", html))
    text = _TAG_RE.sub(" ", text)
    for entity, replacement in _ENTITIES:
        text = re.sub(re.escape(entity), replacement, text, flags=re.IGNORECASE)
    return _WS_RE.sub(" ", text).strip()[:max_chars]


def normalize_input_text(raw: Optional[str], max_chars: int = MAX_CHAR_LENGTH) -> str:
    if not raw:
        return ""
    return _WS_RE.sub(" ", raw).strip()[:max_chars]


class ContentSource(ABC):
    """Fetches raw content for a URL and returns cleaned text."""

    @abstractmethod
    async def fetch(self, url: str) -> str:
        ...


class HttpContentSource(ContentSource):
    """Fetch over HTTP(S) with httpx and clean the HTML body."""

    def __init__(
        self,
        timeout: float = 30.0,
        max_chars: int = MAX_CHAR_LENGTH,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._max_chars = max_chars
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                transport=self._transport,
            )
        return self._client

    async def fetch(self, url: str) -> str:
        logger.info("GET %s", url)
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise IngestError(f"Failed to fetch URL: {e}") from e

        if response.is_error:
            raise IngestError(f"Failed to fetch URL: {response.status_code}")

        return clean_html_to_text(response.text, self._max_chars)

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
