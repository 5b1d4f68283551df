from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = "ol-link-preview"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    user_agent: str = Field(default=DEFAULT_USER_AGENT, alias="PREVIEW_USER_AGENT")
    max_redirects: int = Field(default=3, ge=0, alias="PREVIEW_MAX_REDIRECTS")
    timeout_s: float = Field(default=10.0, gt=0, alias="PREVIEW_TIMEOUT_S")
    # None or 0 disables the size cap.
    max_body_bytes: int | None = Field(default=None, ge=0, alias="PREVIEW_MAX_BODY_BYTES")
    max_transport_redirects: int = Field(default=10, ge=0, alias="PREVIEW_MAX_TRANSPORT_REDIRECTS")


def load_settings() -> Settings:
    return Settings()
