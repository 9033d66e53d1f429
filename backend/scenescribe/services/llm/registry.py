"""Map a ``models.text_llm`` id to its backend.

``ollama/<name>`` goes to Ollama; every other id is treated as a Gemini
model on Vertex AI.
"""

import logging
from typing import Optional

from scenescribe.config import Settings, settings as default_settings
from scenescribe.services.llm.base import LLMAdapter

logger = logging.getLogger(__name__)


def get_adapter(model_id: str, app_settings: Optional[Settings] = None) -> LLMAdapter:
    cfg = app_settings or default_settings

    if model_id.startswith("ollama/"):
        from scenescribe.services.llm.ollama_adapter import OllamaAdapter

        logger.debug("%s -> Ollama at %s", model_id, cfg.ollama.base_url)
        return OllamaAdapter(model_id, base_url=cfg.ollama.base_url, api_key=cfg.ollama.api_key)

    from scenescribe.services.llm.vertex_adapter import VertexAIAdapter

    logger.debug("%s -> Vertex AI (%s)", model_id, cfg.google_cloud.location)
    return VertexAIAdapter(model_id, app_settings=cfg)
