"""Configuration management for the read-it-later widgets.

All configuration comes from environment variables. Uses pydantic-settings
for validation so a missing API URL or a malformed number produces a clear
error at startup rather than a cryptic failure on the first request.
"""

from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Widget configuration loaded from environment variables."""

    api_url: str = Field(alias="READLATER_API_URL")
    token: SecretStr | None = Field(default=None, alias="READLATER_TOKEN")
    widget_url: str | None = Field(default=None, alias="READLATER_WIDGET_URL")
    token_file: Path = Field(
        default=Path("~/.config/readlater/token").expanduser(),
        alias="READLATER_TOKEN_FILE",
    )
    list_limit: int = Field(default=200, alias="READLATER_LIST_LIMIT")
    search_debounce: float = Field(default=0.5, alias="READLATER_SEARCH_DEBOUNCE")
    toast_duration: float = Field(default=3.0, alias="READLATER_TOAST_DURATION")
    error_toast_duration: float = Field(default=6.0, alias="READLATER_ERROR_TOAST_DURATION")
    request_timeout: float = Field(default=30.0, alias="READLATER_REQUEST_TIMEOUT")
    server_host: str = Field(default="127.0.0.1", alias="MCP_SERVER_HOST")
    server_port: int = Field(default=8000, alias="MCP_SERVER_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        populate_by_name=True,
        extra="ignore",
    )


def load_config() -> Config:
    """Load and validate config from environment. Raises on missing required vars."""
    return Config()
