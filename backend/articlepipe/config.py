"""Configuration management with YAML and environment variable support."""

from pathlib import Path
from typing import ClassVar

import yaml
from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads configuration from YAML file."""

    def get_field_value(self, field, field_name: str):
        # Not used with prepare method
        pass

    def prepare_field_value(self, field_name: str, field, value, value_is_complex: bool):
        return value

    def __call__(self):
        yaml_path = Path("config.yaml")
        if not yaml_path.exists():
            return {}

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return data


class GeminiConfig(BaseModel):
    """Gemini models used for extraction, summaries, titles and thumbnails."""

    api_key: str = ""
    text_model: str = "gemini-2.5-pro"
    image_model: str = "gemini-2.5-flash-image"


class ElevenLabsConfig(BaseModel):
    """ElevenLabs text-to-speech settings."""

    api_key: str = ""
    base_url: str = "https://api.elevenlabs.io"
    voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    model_id: str = "eleven_monolingual_v1"
    multilingual_model_id: str = "eleven_multilingual_v2"
    stability: float = 0.5
    similarity_boost: float = 0.75
    timeout_seconds: float = 120.0


class FalConfig(BaseModel):
    """fal.ai queue API settings for video generation."""

    api_key: str = ""
    queue_url: str = "https://queue.fal.run"
    model: str = "fal-ai/sora-2"
    aspect_ratio: str = "16:9"
    poll_interval: float = 5.0
    poll_max_attempts: int = 60
    timeout_seconds: float = 300.0


class StorageConfig(BaseModel):
    """Database and artifact storage configuration."""

    database_url: str = "sqlite+aiosqlite:///articlepipe.db"
    tmp_dir: Path = Path("tmp")
    endpoint: str = ""
    public_url: str = ""
    region: str = "us-east-1"
    access_key: str = ""
    secret_key: str = ""
    bucket_name: str = "articles"

    @field_validator("tmp_dir", mode="before")
    @classmethod
    def convert_tmp_dir_to_path(cls, v):
        """Convert string to Path object."""
        if isinstance(v, str):
            return Path(v)
        return v


class NotificationConfig(BaseModel):
    """Apple Push Notification service settings.

    An empty token disables push delivery.
    """

    apns_token: str = ""
    device_token: str = ""
    bundle_id: str = ""
    production: bool = False
    timeout_seconds: float = 10.0


class PipelineConfig(BaseModel):
    """Pipeline execution parameters."""

    default_title: str = "Untitled Article"
    default_style: str = "summarize"
    default_language: str = "en"
    max_workers: int = 4
    queue_size: int = 100


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080


class Settings(BaseSettings):
    """Main application settings with YAML and environment variable support.

    Configuration sources (in priority order):
    1. Environment variables (prefix: ARTICLEPIPE_, delimiter: __)
    2. .env file
    3. YAML file (config.yaml)
    4. Field defaults
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="ARTICLEPIPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    gemini: GeminiConfig = GeminiConfig()
    elevenlabs: ElevenLabsConfig = ElevenLabsConfig()
    fal: FalConfig = FalConfig()
    storage: StorageConfig = StorageConfig()
    notifications: NotificationConfig = NotificationConfig()
    pipeline: PipelineConfig = PipelineConfig()
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
        """Customize settings sources to include YAML configuration.

        Priority order (highest to lowest):
        1. Environment variables
        2. .env file
        3. YAML file
        4. Init settings (programmatic defaults)
        """
        return (
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            init_settings,
        )


# Singleton instance
settings = Settings()
