"""
Application configuration using pydantic-settings.

Loads configuration from environment variables and .env files.
"""

import tempfile
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Completion (DeepSeek, OpenAI-compatible chat API)
    deepseek_api_key: str | None = Field(
        default=None,
        description="API key for the completion service",
    )
    deepseek_base_url: str = Field(
        default="https://api.deepseek.com",
        description="Base URL of the completion service",
    )
    llm_model_name: str = Field(
        default="deepseek-chat",
        description="Chat model identifier",
    )
    llm_max_tokens: int = Field(
        default=200,
        description="Maximum tokens per assistant reply",
    )
    llm_timeout: float = Field(
        default=60.0,
        description="Timeout in seconds for completion requests",
    )

    # Transcription (OpenAI Whisper)
    openai_api_key: str | None = Field(
        default=None,
        description="API key for the transcription service; transcription is disabled when unset",
    )
    stt_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the transcription service",
    )
    stt_model: str = Field(
        default="whisper-1",
        description="Transcription model identifier",
    )
    stt_timeout: float = Field(
        default=60.0,
        description="Timeout in seconds for transcription requests",
    )

    # Synthesis (Google Cloud Text-to-Speech)
    tts_voice_id: str = Field(
        default="ru-RU-Wavenet-D",
        description="Google TTS voice name",
    )
    google_application_credentials: str | None = Field(
        default=None,
        description="Path to a Google service-account JSON file",
    )

    # Pipeline
    memory_max_pairs: int = Field(
        default=10,
        description="Number of (user, assistant) pairs kept in conversation memory",
    )
    upload_dir: str = Field(
        default_factory=tempfile.gettempdir,
        description="Directory where uploaded audio is spooled",
    )
    stream_chunk_size: int = Field(
        default=4096,
        description="Chunk size in bytes for streamed audio responses",
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=5000, description="Bind port")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
