"""Application configuration from environment."""
from functools import lru_cache
from typing import Optional

from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "discord-zendesk-bridge"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Discord: bot login, interaction signature key, watched forum
    discord_token: Optional[str] = None
    public_key: Optional[str] = None
    discord_support_forum_id: Optional[int] = None

    # Zendesk REST API (basic auth "<email>/token" + API token)
    zendesk_subdomain: Optional[str] = None
    zendesk_email: Optional[str] = None
    zendesk_api_token: Optional[str] = None
    # Custom field that stores the originating thread id, and the group new tickets go to
    zendesk_thread_field_id: Optional[int] = None
    zendesk_group_id: Optional[int] = None
    # Shared secret of the Zendesk webhook; signature check is skipped when unset
    zendesk_webhook_secret: Optional[str] = None

    # Zendesk commenter id -> Discord delivery webhook URL (JSON object in env)
    commenter_webhooks: dict[str, AnyHttpUrl] = {}

    # Ticket links table (thread id -> ticket id)
    database_url: str = "sqlite+aiosqlite:///./bridge.db"

    # Audit trail, one timestamped line per event
    audit_log_path: str = "app.log"

    # Outbound HTTP timeout, seconds
    http_timeout: float = 30.0

    # Consistency wait between marker write and marker read-back
    correlation_initial_delay: float = 1.0
    correlation_attempts: int = 3
    correlation_retry_delay: float = 1.0

    @field_validator("commenter_webhooks", mode="before")
    @classmethod
    def _strip_commenter_keys(cls, value):
        if isinstance(value, dict):
            return {str(k).strip(): v for k, v in value.items()}
        return value

    @field_validator("correlation_attempts")
    @classmethod
    def _at_least_one_attempt(cls, value: int) -> int:
        if value < 1:
            raise ValueError("correlation_attempts must be >= 1")
        return value

    @property
    def zendesk_base_url(self) -> str:
        return f"https://{self.zendesk_subdomain}.zendesk.com/api/v2"

    @property
    def commenter_webhook_urls(self) -> dict[str, str]:
        return {k: str(v) for k, v in self.commenter_webhooks.items()}


@lru_cache
def get_settings() -> Settings:
    return Settings()
