"""Token relay configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

OAUTH_RELAY_TIMEOUT_SECONDS = 15.0
OAUTH_RELAY_FUNCTIONS_PATH = "/.netlify/functions/"


@dataclass(frozen=True)
class OAuthRelayConfig:
    """Holds the location of the OAuth relay that owns the client secrets."""

    base_url: str
    resilience: ResilienceConfig


def get_oauth_relay_config(*, resilience: ResilienceConfig | None = None) -> OAuthRelayConfig:
    values = require_env_vars(("OAUTH_RELAY_URL",))
    base_url = values["OAUTH_RELAY_URL"].rstrip("/")
    return OAuthRelayConfig(
        base_url=base_url,
        resilience=resilience
        or ResilienceConfig(
            name="oauth-relay",
            base_url=f"{base_url}{OAUTH_RELAY_FUNCTIONS_PATH}",
            timeout_seconds=OAUTH_RELAY_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        ),
    )
