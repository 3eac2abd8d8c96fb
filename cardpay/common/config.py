"""Environment-driven settings for the payment API process.

Loaded once at startup. Missing required keys (`DATABASE_URL`,
`PAYMENT_GATEWAY_API_KEY`) abort startup instead of failing per request.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "cardpay-api"
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 3000
    # Bare postgres:// and postgresql:// DSNs are mapped to the psycopg driver.
    database_url: str
    db_max_connections: int = 5
    payment_gateway_api_key: str
    # Unset means the in-process simulated gateway is used.
    payment_gateway_url: str | None = None
    gateway_timeout_seconds: float = 10.0
    otel_exporter_otlp_endpoint: str | None = None
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, reading the environment on first use."""

    return Settings()
