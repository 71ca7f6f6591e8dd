"""Configuration management for AgentDesk using Pydantic."""

import logging
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # OpenAI Configuration
    openai_api_key: str = Field(..., description="OpenAI API key")
    editor_model: str = Field(
        default="gpt-4o", description="Model used by the conversational prompt editor"
    )
    editor_temperature: float = Field(default=0.1)
    editor_max_tokens: int = Field(default=2000)
    editor_enforce_placeholders: bool = Field(
        default=False,
        description="Reject proposals that drop placeholders from the current prompt",
    )
    review_model: str = Field(
        default="gpt-4o", description="Model used to improve prompts from transcripts"
    )
    transcription_model: str = Field(default="whisper-1")

    # Voice platform (Retell) Configuration
    retell_api_key: str | None = Field(None, description="Voice platform API key")
    retell_base_url: str = Field(default="https://api.retellai.com")
    agent_voice_id: str = Field(default="11labs-Adrian")
    agent_language: str = Field(default="en-US")

    # Storage Configuration
    store_backend: Literal["memory", "sqlite"] = Field(default="sqlite")
    store_path: str = Field(default="agentdesk.db", description="SQLite database file")

    # Analytics polling
    analytics_max_attempts: int = Field(default=10, gt=0)
    analytics_interval: float = Field(
        default=5.0, ge=0, description="Seconds between analytics attempts"
    )
    max_tracked_calls: int = Field(
        default=500, gt=0, description="Finished call sessions kept in memory"
    )

    # Outbound HTTP
    request_timeout: float = Field(default=30.0, gt=0)

    # Server Configuration
    server_host: str = Field(default="0.0.0.0", description="Server host")
    server_port: int = Field(default=8080, description="Server port")
    server_url: str = Field(
        default="http://localhost:8080",
        description="Server URL for CLI to connect to API",
    )
    public_base_url: str = Field(
        default="http://localhost:5173",
        description="Public console URL used for share links",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    def has_voice_platform_config(self) -> bool:
        """Check if the voice platform is configured."""
        return bool(self.retell_api_key)

    def model_post_init(self, __context) -> None:
        """Validate configuration after initialization."""
        if not self.retell_api_key:
            logger.warning("RETELL_API_KEY not set - voice platform calls will fail")


# HTTP client libraries log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai")

# Global config instance
config: Config | None = None


def get_config() -> Config:
    """Get or create the global configuration instance."""
    global config
    if config is None:
        config = Config()
    return config


def setup_logging(cfg: Config | None = None) -> None:
    """Configure logging for the API server and the CLI."""
    cfg = cfg or get_config()

    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
