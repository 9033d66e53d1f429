"""Gemini on Vertex AI via the google-genai SDK.

Structured output uses ``response_schema`` so the model is constrained to
the schema server-side. Authentication is Application Default Credentials;
``GOOGLE_APPLICATION_CREDENTIALS`` may come from a local .env file.
"""

import logging
from typing import Optional, Type

from dotenv import load_dotenv
from google import genai
from google.genai import types as genai_types

from scenescribe.config import GoogleCloudConfig, Settings, settings as default_settings
from scenescribe.services.llm.base import LLMAdapter, SchemaT

logger = logging.getLogger(__name__)

load_dotenv()

_clients: dict[tuple[str, str], genai.Client] = {}


def vertex_client(cloud: GoogleCloudConfig) -> genai.Client:
    """One client per (project, location)."""
    key = (cloud.project_id, cloud.location)
    client = _clients.get(key)
    if client is None:
        logger.info("Creating Vertex AI client for %s/%s", *key)
        client = genai.Client(vertexai=True, project=cloud.project_id, location=cloud.location)
        _clients[key] = client
    return client


class VertexAIAdapter(LLMAdapter):
    """Gemini models addressed by plain ids such as ``gemini-2.5-flash``."""

    def __init__(self, model_id: str, app_settings: Optional[Settings] = None) -> None:
        self.model = model_id
        self._cloud = (app_settings or default_settings).google_cloud

    async def complete_json(
        self,
        prompt: str,
        schema: Type[SchemaT],
        *,
        system_prompt: Optional[str] = None,
        temperature: float = 0.5,
        attempts: int = 3,
    ) -> SchemaT:
        request_config = genai_types.GenerateContentConfig(
            temperature=temperature,
            system_instruction=system_prompt,
            response_mime_type="application/json",
            response_schema=schema,
        )
        async for attempt in self.retrying(attempts):
            with attempt:
                client = vertex_client(self._cloud)
                response = await client.aio.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=request_config,
                )
                return schema.model_validate_json(response.text or "")
