"""
Konfiguracja aplikacji — centralne zarządzanie zmiennymi środowiskowymi.
Ulepszenie: walidacja Pydantic Settings + grupowanie po domenach + sensowne defaults.
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Aplikacja ──
    APP_NAME: str = "SocialConnect"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    API_V1_PREFIX: str = "/api/v1"
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]
    # Publiczny adres aplikacji, z niego budowany jest redirect_uri callbacku
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # ── Sesja przeglądarki ──
    SECRET_KEY: str = "CHANGE-ME-IN-PRODUCTION-USE-OPENSSL-RAND"
    SESSION_COOKIE_NAME: str = "socialconnect_session"
    SESSION_MAX_AGE_SECONDS: int = 14 * 24 * 3600
    SESSION_HTTPS_ONLY: bool = False

    # ── Meta Graph API ──
    META_GRAPH_URL: str = "https://graph.facebook.com"
    META_DIALOG_URL: str = "https://www.facebook.com"
    META_API_VERSION: str = "v21.0"
    META_HTTP_TIMEOUT: float = 30.0
    # Deklarowana ważność tokena długoterminowego, wysyłana do backendu jako tekst
    LONG_LIVED_TOKEN_EXPIRES_IN: str = "60 days"

    # ── Backend webhookowy (workflow no-code) ──
    WEBHOOK_BASE_URL: str = "http://localhost:5678/webhook"
    WEBHOOK_AUTH_HEADER: str = "Auth"
    WEBHOOK_AUTH_TOKEN: str = ""
    WEBHOOK_TIMEOUT: float = 30.0
    WEBHOOK_READ_RETRIES: int = 3

    # ── Sentry ──
    SENTRY_DSN: str = ""

    # ── Rate Limiting ──
    RATE_LIMIT_PER_MINUTE: int = 60

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_origins(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("PUBLIC_BASE_URL", "WEBHOOK_BASE_URL", "META_GRAPH_URL", "META_DIALOG_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def graph_api_base(self) -> str:
        return f"{self.META_GRAPH_URL}/{self.META_API_VERSION}"

    def oauth_redirect_uri(self, platform: str) -> str:
        return f"{self.PUBLIC_BASE_URL}/oauth-callback/{platform}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
