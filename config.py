"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

The hCaptcha secret is optional at load time so the app can boot without it;
a verifier built from an empty secret rejects every token at the remote
service (``missing-input-secret``).
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_MEMORY = 32 << 20  # 32 MiB
DEFAULT_CONTEXT_KEY = "hcaptcha"


class HCaptchaSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    hcaptcha_secret: str = ""
    hcaptcha_site_key: str = ""

    # Static caller IP sent as "remoteip"; takes precedence over forwarding
    hcaptcha_remote_ip: str = ""
    hcaptcha_forward_client_ip: bool = False

    # Per-part ceiling for multipart/urlencoded form parsing (bytes)
    hcaptcha_max_memory: int = DEFAULT_MAX_MEMORY
    hcaptcha_context_key: str = DEFAULT_CONTEXT_KEY

    # Outbound transport timeout; the verifier itself never retries
    hcaptcha_timeout_seconds: float = 5.0

    @property
    def enabled(self) -> bool:
        return bool(self.hcaptcha_secret)


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_name: str = "hcaptcha-gate"

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    hcaptcha: Optional[HCaptchaSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.hcaptcha is None:
            self.hcaptcha = HCaptchaSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
