from functools import lru_cache
from typing import Any, Iterable, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.exceptions import ConfigurationError

_DEFAULT_CORS = ["http://localhost:3000", "http://localhost:5173"]

REQUIRED_FIELDS = ("stripe_secret_key", "stripe_webhook_secret", "mongodb_uri")


def _parse_cors_origins(v: Any) -> List[str]:
    if v is None or v == "":
        return _DEFAULT_CORS.copy()
    if isinstance(v, list):
        return [x for x in v if isinstance(x, str) and x.strip()]
    s = str(v).strip()
    if s.startswith("["):
        import json
        try:
            out = json.loads(s)
        except ValueError:
            return _DEFAULT_CORS.copy()
        return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
    return [x.strip() for x in s.split(",") if x.strip()] or _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")

    # Stripe
    stripe_secret_key: str = Field(default="", alias="STRIPE_SECRET_KEY")
    stripe_webhook_secret: str = Field(default="", alias="STRIPE_WEBHOOK_SECRET")
    currency: str = Field(default="usd", alias="CHECKOUT_CURRENCY")
    product_name: str = Field(default="Order", alias="CHECKOUT_PRODUCT_NAME")

    # MongoDB
    mongodb_uri: str = Field(default="", alias="MONGODB_URI")
    database_id: str = Field(default="orders", alias="DATABASE_ID")
    collection_id: str = Field(default="orders", alias="COLLECTION_ID")

    # Static page
    endpoint: str = Field(default="http://localhost:8000", alias="APP_ENDPOINT")
    project_id: str = Field(default="", alias="PROJECT_ID")
    function_id: str = Field(default="", alias="FUNCTION_ID")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors_origins(self.cors_origins_raw)


def throw_if_missing(settings: Settings, names: Iterable[str] = REQUIRED_FIELDS) -> None:
    """Raise ConfigurationError listing every required setting that is unset or blank."""
    missing = []
    for name in names:
        value = getattr(settings, name, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            field = Settings.model_fields.get(name)
            missing.append(field.alias if field and field.alias else name)
    if missing:
        raise ConfigurationError(f"Missing required fields: {', '.join(missing)}")


@lru_cache
def get_settings() -> Settings:
    return Settings()
