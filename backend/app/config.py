"""
Process-wide configuration.

Values are read from the environment (and a local .env file, via
python-dotenv) once at startup and frozen into a Settings value. The
forwarder receives Settings at construction time, so tests can build their
own instead of touching os.environ.

Environment variables
---------------------
MAILCHIMP_API_KEY          Mailchimp API key (required for forwarding).
MAILCHIMP_AUDIENCE_ID      Audience / list id (required for forwarding).
MAILCHIMP_DC               Data-center prefix, e.g. "us18". When unset it is
                           taken from the API key suffix ("...-us18").
MAILCHIMP_ALLOWED_TAGS     Comma-separated tag allow-list (optional).
MAILCHIMP_TIMEOUT_SECONDS  Per-request timeout for Mailchimp calls (default 10).
WEBHOOK_SECRET             Shared secret expected in X-Webhook-Secret (optional).
PORT                       Listen port used by app.main.run() (default 8080).
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from app.errors import ConfigError

load_dotenv()

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 10.0
_DEFAULT_PORT = 8080


def _split_csv(raw: Optional[str]) -> tuple[str, ...]:
    """Split a comma-separated env value, dropping blanks."""
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def data_center_from_api_key(api_key: str) -> str:
    """
    Return the data-center suffix of a Mailchimp API key.

    Mailchimp keys look like "<hex>-us18"; the part after the last dash names
    the regional endpoint. Returns "" when the key carries no suffix.
    """
    if "-" not in api_key:
        return ""
    return api_key.rsplit("-", 1)[1].strip()


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration for the bridge."""

    api_key: str = ""
    audience_id: str = ""
    data_center: str = ""
    allowed_tags: tuple[str, ...] = field(default_factory=tuple)
    timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS
    webhook_secret: str = ""
    port: int = _DEFAULT_PORT

    def missing(self) -> list[str]:
        """Names of the required environment variables that are empty."""
        required = [
            ("MAILCHIMP_API_KEY", self.api_key),
            ("MAILCHIMP_AUDIENCE_ID", self.audience_id),
            ("MAILCHIMP_DC", self.data_center),
        ]
        return [name for name, value in required if not value]

    def require_mailchimp(self) -> None:
        """Raise ConfigError if any value needed for forwarding is empty."""
        missing = self.missing()
        if missing:
            raise ConfigError(
                "Missing Mailchimp env vars: " + ", ".join(missing),
                details={"missing": missing},
            )

    @property
    def base_url(self) -> str:
        return f"https://{self.data_center}.api.mailchimp.com/3.0"


def _parse_float(name: str, raw: Optional[str], default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r; using %s", name, raw, default)
        return default
    return value


def _parse_int(name: str, raw: Optional[str], default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; using %s", name, raw, default)
        return default


def load_settings(environ: Optional[dict] = None) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Never raises for missing Mailchimp values; those are reported by
    Settings.require_mailchimp() when a webhook is actually forwarded, so the
    health check keeps working on a half-configured deployment.
    """
    env = os.environ if environ is None else environ

    api_key = (env.get("MAILCHIMP_API_KEY") or "").strip()
    data_center = (env.get("MAILCHIMP_DC") or "").strip()
    if not data_center and api_key:
        data_center = data_center_from_api_key(api_key)

    return Settings(
        api_key=api_key,
        audience_id=(env.get("MAILCHIMP_AUDIENCE_ID") or "").strip(),
        data_center=data_center,
        allowed_tags=_split_csv(env.get("MAILCHIMP_ALLOWED_TAGS")),
        timeout_seconds=_parse_float(
            "MAILCHIMP_TIMEOUT_SECONDS",
            env.get("MAILCHIMP_TIMEOUT_SECONDS"),
            _DEFAULT_TIMEOUT_SECONDS,
        ),
        webhook_secret=(env.get("WEBHOOK_SECRET") or "").strip(),
        port=_parse_int("PORT", env.get("PORT"), _DEFAULT_PORT),
    )


@lru_cache
def get_settings() -> Settings:
    """Settings for this process, loaded on first use and then reused."""
    settings = load_settings()
    missing = settings.missing()
    if missing:
        logger.warning(
            "Mailchimp configuration incomplete (%s); webhooks will be rejected",
            ", ".join(missing),
        )
    return settings
