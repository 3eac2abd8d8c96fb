"""Startup-time helpers for safe config logging."""

from cardpay.common.config import Settings
from cardpay.common.logging import logger


SECRET_MARKERS = ("key", "secret", "password", "token", "database_url")


def redacted_settings(settings: Settings) -> dict[str, object]:
    """Return settings as a dict with secret-like fields (and the DSN) hidden."""

    config: dict[str, object] = {}
    for name, value in settings.model_dump().items():
        if value is None:
            config[name] = "<unset>"
        elif any(marker in name for marker in SECRET_MARKERS):
            config[name] = "<redacted>"
        else:
            config[name] = value
    return config


def log_startup_config(settings: Settings) -> None:
    """Log the effective configuration for quick troubleshooting."""

    logger.info("startup_config=%s", redacted_settings(settings))
