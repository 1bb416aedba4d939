"""Configuration dataclass for the relay."""

import os
from dataclasses import dataclass, field

DEFAULT_ALLOWED_ORIGINS = ["https://sinergiagdl.com"]


class ConfigurationError(Exception):
    """Raised when a required environment value is missing."""


@dataclass
class Config:
    """Application configuration.

    All configuration should be passed as a Config instance rather than
    reading from environment variables directly.
    """

    groq_api_base_url: str
    groq_api_key: str
    port: int = 5000
    allowed_origins: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    relay_url: str | None = None
    max_turns: int | None = None
    conversation_ttl_seconds: float | None = None


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < 1:
        raise ConfigurationError(f"{name} must be at least 1, got {value}")
    return value


def load_config() -> Config:
    """Load configuration from environment variables.

    This is the only place that reads from environment variables.

    Raises:
        ConfigurationError: If GROQ_API_BASE_URL or GROQ_API_KEY is missing
    """
    base_url = os.getenv("GROQ_API_BASE_URL")
    api_key = os.getenv("GROQ_API_KEY")

    if not base_url or not api_key:
        raise ConfigurationError("GROQ_API_BASE_URL and GROQ_API_KEY must be set in the .env file.")

    origins_env = os.getenv("ALLOWED_ORIGINS")
    if origins_env:
        allowed_origins = [o.strip() for o in origins_env.split(",") if o.strip()]
    else:
        allowed_origins = list(DEFAULT_ALLOWED_ORIGINS)

    ttl = _optional_int("CONVERSATION_TTL_SECONDS")

    return Config(
        groq_api_base_url=base_url,
        groq_api_key=api_key,
        port=int(os.getenv("PORT", "5000")),
        allowed_origins=allowed_origins,
        relay_url=os.getenv("RELAY_URL") or None,
        max_turns=_optional_int("MAX_TURNS"),
        conversation_ttl_seconds=float(ttl) if ttl is not None else None,
    )
