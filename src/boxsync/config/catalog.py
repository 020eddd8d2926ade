"""Remote catalog (Vagrant Cloud) configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from boxsync import __version__

from .env import optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_CATALOG_BASE_URL = "https://vagrantcloud.com"
DEFAULT_CATALOG_API_PREFIX = "/api/v1"
CATALOG_TOKEN_ENV = "BOXSYNC_CATALOG_TOKEN"
CATALOG_URL_ENV = "BOXSYNC_CATALOG_URL"


def default_catalog_resilience(retry: RetryPolicy | None = None) -> ResilienceConfig:
    return ResilienceConfig(
        name="catalog",
        timeout_seconds=60.0,
        retry=retry or RetryPolicy(),
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        cache=None,
        default_headers={"User-Agent": f"boxsync/{__version__}"},
    )


@dataclass(frozen=True, slots=True)
class CatalogConfig:
    """Connection settings for the remote catalog API.

    ``token`` is sent as the ``access_token`` request parameter on every call. An
    empty token is only useful for read-only (dry-run) access to public boxes.
    """

    token: str
    base_url: str = DEFAULT_CATALOG_BASE_URL
    api_prefix: str = DEFAULT_CATALOG_API_PREFIX
    resilience: ResilienceConfig = field(default_factory=default_catalog_resilience)

    @property
    def api_url(self) -> str:
        return self.base_url.rstrip("/") + self.api_prefix


def get_catalog_config(
    *,
    token: str | None = None,
    retry: RetryPolicy | None = None,
    require_token: bool = True,
) -> CatalogConfig:
    """Build the catalog configuration from arguments and the environment."""

    if token is None or not token.strip():
        if require_token:
            token = require_env_vars((CATALOG_TOKEN_ENV,))[CATALOG_TOKEN_ENV]
        else:
            token = optional_env_var(CATALOG_TOKEN_ENV) or ""
    return CatalogConfig(
        token=token.strip(),
        base_url=optional_env_var(CATALOG_URL_ENV) or DEFAULT_CATALOG_BASE_URL,
        resilience=default_catalog_resilience(retry),
    )
