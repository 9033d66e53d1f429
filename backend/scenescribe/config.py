"""Application settings.

Values resolve, highest first: constructor arguments, ``SCENESCRIBE_*``
environment variables (``__`` separates nesting, e.g.
``SCENESCRIBE_RUNWAY__API_KEY``), a ``.env`` file, then a YAML file
(``config.yaml`` unless ``SCENESCRIBE_CONFIG`` points elsewhere).
"""

import os
from typing import ClassVar, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

CONFIG_PATH_ENV = "SCENESCRIBE_CONFIG"


class GoogleCloudConfig(BaseModel):
    """Vertex AI project used for gemini-* text models."""

    project_id: str = ""
    location: str = "us-central1"


class OllamaConfig(BaseModel):
    """Ollama endpoint used for ollama/* text models."""

    base_url: str = "http://localhost:11434"
    api_key: Optional[str] = None


class ModelsConfig(BaseModel):
    text_llm: str = "gemini-2.5-flash"


class RunwayConfig(BaseModel):
    """Runway text-to-video provider. Without ``api_key`` the mock provider is used."""

    api_url: str = "https://api.dev.runwayml.com"
    api_key: Optional[str] = None
    api_version: str = "2024-11-06"
    model: str = "veo3.1"
    request_timeout: float = 60.0

    @field_validator("api_url")
    @classmethod
    def _no_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class PipelineConfig(BaseModel):
    """Concurrency, polling and text-window limits for the generation batches."""

    video_poll_interval: float = Field(default=2.5, ge=0)
    video_poll_max: int = Field(default=12, ge=1)
    video_gen_concurrency: int = Field(default=4, ge=1)
    script_concurrency: int = Field(default=4, ge=1)
    script_source_window: int = 2000
    structure_source_window: int = 8000
    scene_hint_char_budget: int = 1200
    max_source_chars: int = 20000
    min_source_chars: int = 20
    retry_max_attempts: int = Field(default=3, ge=1)


class StorageConfig(BaseModel):
    """Where projects live. ``memory`` is per process; ``sql`` survives restarts."""

    backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite+aiosqlite:///scenescribe.db"


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000


class Settings(BaseSettings):
    """Process-wide settings.

    ``mock`` switches both generation providers to their canned
    implementations, which is also what tests and local development use.
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="SCENESCRIBE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    mock: bool = True
    google_cloud: GoogleCloudConfig = GoogleCloudConfig()
    ollama: OllamaConfig = OllamaConfig()
    models: ModelsConfig = ModelsConfig()
    runway: RunwayConfig = RunwayConfig()
    pipeline: PipelineConfig = PipelineConfig()
    storage: StorageConfig = StorageConfig()
    server: ServerConfig = ServerConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        # A missing YAML file contributes nothing
        yaml_file = os.environ.get(CONFIG_PATH_ENV, "config.yaml")
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file),
        )


settings = Settings()
