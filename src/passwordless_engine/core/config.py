from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="", case_sensitive=True, extra="ignore"
    )

    # Application
    APP_NAME: str = "PasswordlessEngine"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "Passwordless (OTP / magic link) sign in backed by an auth core"
    DEBUG: bool = False
    API_BASE_PATH: str = "/auth"

    # Website the magic links point at
    WEBSITE_DOMAIN: str = "http://localhost:3000"
    WEBSITE_BASE_PATH: str = "/auth"

    # Auth core
    CORE_CONNECTION_URI: str = Field(..., description="Base URL of the auth core")
    CORE_API_KEY: str | None = None
    CORE_TIMEOUT_SECONDS: float = 10.0

    # Passwordless recipe
    CONTACT_METHOD: str = "EMAIL"
    FLOW_TYPE: str = "USER_INPUT_CODE_AND_MAGIC_LINK"

    # Delivery
    EMAIL_PROVIDER: str = "console"
    EMAIL_PROVIDER_API_KEY: str = ""
    EMAIL_SENDER: str = "no-reply@localhost"
    SMS_PROVIDER: str = "console"
    SMS_PROVIDER_API_KEY: str = ""
    SMS_PROVIDER_ACCOUNT_SID: str | None = None
    SMS_SENDER: str = ""

    # Sessions
    REDIS_URL: str = Field(..., description="Redis connection URL")
    REDIS_MAX_CONNECTIONS: int = 50
    JWT_SECRET_KEY: str = Field(..., min_length=32)
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "passwordless-engine"
    JWT_AUDIENCE: str = "passwordless-engine-api"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # CORS
    CORS_ORIGINS: str | list[str] = ["http://localhost:3000", "http://localhost:8000"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: str | list[str] = ["*"]
    CORS_ALLOW_HEADERS: str | list[str] = ["*"]

    @field_validator("CONTACT_METHOD", "FLOW_TYPE", mode="before")
    @classmethod
    def upper_case(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> Any:
        if isinstance(v, str):
            if v.startswith("[") and v.endswith("]"):
                try:
                    import json

                    return json.loads(v)
                except ValueError:
                    pass
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("CORS_ALLOW_METHODS", "CORS_ALLOW_HEADERS", mode="before")
    @classmethod
    def parse_lists(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


# Global settings instance
try:
    settings = Settings()
except Exception as e:
    print(f"Error loading settings: {e}")
    raise e
