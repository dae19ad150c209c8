"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """VoiceCheck application settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        analyzer_provider: Which audio-capable model backend to use ("openai").
        max_recording_seconds: Hard ceiling for one recording attempt.
        share_base_url: Canonical location that share links are built on.
        database_url: Async SQLAlchemy connection string for the access-log store.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Remote analyzer ---
    analyzer_provider: str = "openai"
    openai_api_key: str = ""  # Required when analyzer_provider="openai"
    openai_model: str = "gpt-4o-audio-preview"
    openai_base_url: str = ""  # Empty = SDK default endpoint
    analyzer_temperature: float = 0.8
    analyzer_max_tokens: int = 2048
    analyzer_timeout_seconds: float = 60.0
    default_language: str = "en"  # Output language of the report text

    # --- Session ---
    max_recording_seconds: int = 15
    tick_interval_seconds: float = 1.0
    share_ack_seconds: float = 2.0  # How long the "copied" flag stays up
    share_base_url: str = "http://localhost:8000/"
    admin_path: str = "/admin"

    # --- Audio capture ---
    sample_rate: int = 16000
    channels: int = 1
    input_device: str = ""  # Empty = system default input device
    visualizer_bins: int = 64
    visualizer_fps: float = 30.0

    # --- Storage ---
    # Paths are relative to the project root; absolute paths also supported
    database_url: str = "sqlite+aiosqlite:///data/voicecheck.db"
    ip_lookup_url: str = "https://api.ipify.org?format=json"
    ip_lookup_timeout_seconds: float = 5.0

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 8000
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",  # Dev frontend
            "http://localhost:5173",
        ]
    )
    log_level: str = "INFO"  # Python logging level


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
