from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class InboxSettings(BaseSettings):
    """Reducer settings, read from ``INBOX_*`` environment variables or ``.env``."""

    blocked_users: List[str] = Field(default_factory=lambda: ["John_Doe"])
    blurb_max_length: int = Field(256, ge=1)
    compact_dedup_keys: bool = True
    anomaly_history: int = Field(1000, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="INBOX_",
        env_file=".env",
        extra="ignore",
    )
