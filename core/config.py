"""
Application settings (service-level). Payment settings live in core.settings.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """Service configuration"""

    PROJECT_NAME: str = Field(default="UniPay Orchestrator")
    VERSION: str = Field(default="0.1.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")

    # Comma separated; redacted from every structured log line
    LOG_REDACT_KEYS: str = Field(
        default="signing_secret,secret_key,key_secret,webhook_secret,authorization"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return (v or "INFO").upper()

    @property
    def redact_keys(self) -> set[str]:
        return {item.strip().lower() for item in self.LOG_REDACT_KEYS.split(",") if item.strip()}


settings = Settings()
