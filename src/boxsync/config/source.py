"""Configuration for the external release listing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from boxsync import __version__
from boxsync.domain.model.source import DEFAULT_TITLE_PREFIX

from .env import optional_env_var
from .errors import ConfigurationError
from .http_resilience import CacheConfig, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

DEFAULT_SOURCE_URL = "https://cloud-images.ubuntu.com/vagrant/"
SOURCE_URL_ENV = "BOXSYNC_SOURCE_URL"
LISTING_CACHE_TTL_SECONDS = 300.0

_CODENAMES_ADAPTER = TypeAdapter(dict[str, str])


def default_source_resilience(retry: RetryPolicy | None = None) -> ResilienceConfig:
    return ResilienceConfig(
        name="source",
        timeout_seconds=30.0,
        retry=retry or RetryPolicy(),
        cache=CacheConfig(backend="sqlite", default_ttl_seconds=LISTING_CACHE_TTL_SECONDS),
        default_headers={"User-Agent": f"boxsync/{__version__}"},
    )


@dataclass(frozen=True, slots=True)
class SourceConfig:
    """Where releases are discovered and how they are titled."""

    root_url: str = DEFAULT_SOURCE_URL
    title_prefix: str = DEFAULT_TITLE_PREFIX
    codenames: Mapping[str, str] = field(default_factory=dict)
    resilience: ResilienceConfig = field(default_factory=default_source_resilience)


def load_codenames(path: Path) -> dict[str, str]:
    """Load a JSON object mapping release directory names to display names."""

    try:
        return _CODENAMES_ADAPTER.validate_json(path.read_bytes())
    except OSError as exc:
        raise ConfigurationError(f"Cannot read codename file {path}: {exc}") from exc
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid codename file {path}: {exc}") from exc


def get_source_config(
    *,
    root_url: str | None = None,
    codenames_path: Path | None = None,
    retry: RetryPolicy | None = None,
) -> SourceConfig:
    url = root_url or optional_env_var(SOURCE_URL_ENV) or DEFAULT_SOURCE_URL
    if not url.endswith("/"):
        url += "/"
    return SourceConfig(
        root_url=url,
        codenames=load_codenames(codenames_path) if codenames_path else {},
        resilience=default_source_resilience(retry),
    )
