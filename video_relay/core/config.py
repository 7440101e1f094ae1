# core/config.py

"""
Application Configuration
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    app_name: str = "Video Generation Relay"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # API Settings
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = ["*"]

    # Provider Settings
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("VIDEO_RELAY_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    provider_base_url: str = "https://api.openai.com/v1"
    request_timeout_seconds: float = 60.0
    content_chunk_size: int = 64 * 1024

    # Polling Settings
    poll_interval_ms: int = 5000

    model_config = {
        "env_prefix": "VIDEO_RELAY_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0


settings = Settings()
