"""Common interface for the structured-output LLM backends.

Each backend answers one prompt with one JSON object validated against a
pydantic schema. Retries live here so that every backend backs off the
same way.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Type, TypeVar

from pydantic import BaseModel
from tenacity import AsyncRetrying, before_sleep_log, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def strip_code_fence(raw: str) -> str:
    """Drop a surrounding markdown fence (```json ... ```) if the model added one."""
    text = raw.strip()
    if not text.startswith("```"):
        return text
    _, _, body = text.partition("\n")
    return body.removesuffix("```").rstrip()


class LLMAdapter(ABC):
    """A text model that returns schema-validated JSON."""

    def retrying(self, attempts: int) -> AsyncRetrying:
        """Backoff policy shared by all backends; the last error is re-raised."""
        return AsyncRetrying(
            stop=stop_after_attempt(max(attempts, 1)),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    @abstractmethod
    async def complete_json(
        self,
        prompt: str,
        schema: Type[SchemaT],
        *,
        system_prompt: Optional[str] = None,
        temperature: float = 0.5,
        attempts: int = 3,
    ) -> SchemaT:
        """Ask the model for one JSON object matching ``schema``.

        Transport and validation failures are retried up to ``attempts``
        times in total.
        """
        ...
