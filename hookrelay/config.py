"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from hookrelay.utils.platform import get_config_dir, get_data_dir


class WebhooksConfig(BaseModel):
    bind: str = "0.0.0.0"
    port: int = 8080
    path_prefix: str = "/hookrelay"
    # Externally reachable base URL, e.g. "https://bots.example.com"
    public_url: str = ""
    # Shared secret all per-conversation tokens are derived from
    secret: str = ""
    event_header: str = "X-Gitea-Event"
    max_body_bytes: int = 1024 * 1024

    @property
    def base_path(self) -> str:
        prefix = "/" + self.path_prefix.strip("/")
        return prefix if prefix != "/" else ""

    @property
    def health_path(self) -> str:
        return self.base_path or "/"

    @property
    def webhook_path(self) -> str:
        return f"{self.base_path}/webhook"

    @property
    def webhook_url(self) -> str:
        return self.public_url.rstrip("/") + self.webhook_path


class DiscordConfig(BaseModel):
    token: str = ""
    guild_ids: list[int] = Field(default_factory=list)
    message_limit: int = 1900


class SignalConfig(BaseModel):
    phone_number: str = ""
    rest_api_url: str = "http://localhost:8080"
    message_limit: int = 2000
    timeout: float = 30.0
    poll_interval: float = 1.0


class CommandsConfig(BaseModel):
    prefix: str = "!gitea"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HOOKRELAY_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    webhooks: WebhooksConfig = Field(default_factory=WebhooksConfig)
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    signal: SignalConfig = Field(default_factory=SignalConfig)
    commands: CommandsConfig = Field(default_factory=CommandsConfig)
    gitea_url: str = ""
    data_dir: str = ""
    log_level: str = "INFO"
    log_json: bool = False

    def get_data_dir(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir)
        return get_data_dir()


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    if config_path is None:
        config_path = os.environ.get("HOOKRELAY_CONFIG")
    if config_path is None:
        default = get_config_dir() / "config.yaml"
        if default.exists():
            config_path = default

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    # YAML values act as init kwargs; pydantic-settings gives init priority,
    # so env vars only fill what the file leaves unset.
    return Settings(**yaml_data)
