"""Ollama backend (local daemon or Ollama Cloud).

Requests ``format="json"`` and spells the schema out in the system
message; schema-constrained decoding is not enforced reliably by every
hosted model.
"""

import json
import logging
from typing import Optional, Type

from ollama import AsyncClient

from scenescribe.services.llm.base import LLMAdapter, SchemaT, strip_code_fence

logger = logging.getLogger(__name__)

MODEL_PREFIX = "ollama/"


def schema_hint(schema: Type[SchemaT]) -> str:
    """Instruction block describing the JSON shape the reply must have."""
    return (
        "Reply with exactly one JSON object and nothing else. "
        "It must validate against this JSON schema:\n"
        + json.dumps(schema.model_json_schema())
    )


class OllamaAdapter(LLMAdapter):
    """Chat completion through ``ollama.AsyncClient`` with JSON output."""

    def __init__(
        self,
        model_id: str,
        base_url: str = "http://localhost:11434",
        api_key: Optional[str] = None,
    ) -> None:
        self.model = model_id.removeprefix(MODEL_PREFIX)
        auth = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = AsyncClient(host=base_url, headers=auth)

    def _messages(self, prompt: str, system_prompt: Optional[str], hint: str) -> list[dict]:
        system = f"{system_prompt}\n\n{hint}" if system_prompt else hint
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ]

    async def complete_json(
        self,
        prompt: str,
        schema: Type[SchemaT],
        *,
        system_prompt: Optional[str] = None,
        temperature: float = 0.5,
        attempts: int = 3,
    ) -> SchemaT:
        messages = self._messages(prompt, system_prompt, schema_hint(schema))
        async for attempt in self.retrying(attempts):
            with attempt:
                response = await self._client.chat(
                    model=self.model,
                    messages=messages,
                    format="json",
                    options={"temperature": temperature},
                    stream=False,
                )
                content = response.message.content or ""
                logger.debug("%s replied with %d chars", self.model, len(content))
                return schema.model_validate_json(strip_code_fence(content))
