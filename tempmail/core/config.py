from __future__ import annotations

import codecs
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tempmail.services.mime.types import ParserConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    VERSION: str = "0.1.0"
    APP_ENV: str = "dev"  # dev|test|prod

    # Comma-separated list of domains this service accepts mail for.
    MAIL_DOMAINS: str = "example.com"
    NO_SUBJECT_PLACEHOLDER: str = "(no subject)"
    PREVIEW_MAX_CHARS: int = 150

    MIME_MAX_DEPTH: int = 10
    MIME_DEFAULT_CHARSET: str = "utf-8"

    MESSAGE_STORE: str = "memory"  # "memory" or "local"
    LOCAL_MESSAGE_DIR: str = "var/messages"
    INBOUND_MAX_BYTES: int = 25 * 1024 * 1024

    REQUEST_ID_HEADER: str = "x-request-id"
    ENABLE_PROMETHEUS_METRICS: bool = True
    PROMETHEUS_METRICS_PATH: str = "/metrics"

    @field_validator("MIME_MAX_DEPTH")
    @classmethod
    def _validate_mime_max_depth(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("MIME_MAX_DEPTH must be between 1 and 10")
        return v

    @field_validator("MIME_DEFAULT_CHARSET")
    @classmethod
    def _validate_mime_default_charset(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"MIME_DEFAULT_CHARSET is not a known codec: {v}") from e
        return v

    @property
    def mail_domains(self) -> list[str]:
        return [d.strip().lower() for d in self.MAIL_DOMAINS.split(",") if d.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def parser_config_from_settings(settings: Settings) -> ParserConfig:
    return ParserConfig(
        max_depth=settings.MIME_MAX_DEPTH,
        default_charset=settings.MIME_DEFAULT_CHARSET,
    )
