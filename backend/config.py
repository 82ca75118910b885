from functools import lru_cache
from pathlib import Path
from typing import Annotated, List, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from backend.errors import ConfigurationError

ROOT_DIR = Path(__file__).resolve().parents[1]

# Values without which a handler cannot reach the bot provider.
BOT_DISPATCH_SETTINGS = ("recall_api_key", "public_app_url")


class Settings(BaseSettings):
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"
    cors_origins: Annotated[List[str], NoDecode] = ["http://localhost:3000"]

    recall_api_key: str | None = None
    recall_api_url: str = "https://us-west-2.recall.ai/api/v1/bot"
    public_app_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("public_app_url", "next_public_app_url"),
    )
    default_bot_name: str = "Notetaker"
    transcript_mode: str = "prioritize_low_latency"
    transcript_language: str = "en"

    summarizer_provider: Literal["gemini", "bedrock"] = "gemini"
    google_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com"

    aws_region: str = "us-east-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    bedrock_model_id: str = "anthropic.claude-3-haiku-20240307-v1:0"

    meetings_store_path: Path = ROOT_DIR / "data" / "meetings.json"

    http_timeout_seconds: float = 15.0
    llm_timeout_seconds: float = 120.0
    min_transcript_chars: int = 50
    summary_retry_attempts: int = 3
    summary_retry_delay_seconds: float = 2.0

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            items = [item.strip() for item in value.split(",") if item.strip()]
            default_value = cls.model_fields["cors_origins"].default  # type: ignore[index]
            return items or default_value
        return value

    @field_validator("public_app_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, value: str | None) -> str | None:
        if value:
            return value.rstrip("/")
        return value

    def missing(self, *names: str) -> list[str]:
        return [name for name in names if not getattr(self, name)]

    def require(self, *names: str) -> None:
        """Raise ConfigurationError naming every unset value in ``names``."""
        missing = self.missing(*names)
        if missing:
            env_names = ", ".join(name.upper() for name in missing)
            raise ConfigurationError(f"Missing required configuration: {env_names}")

    class Config:
        env_file = str(ROOT_DIR / ".env")
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
