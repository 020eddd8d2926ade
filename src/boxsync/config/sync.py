"""Settings for a catalog sync run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from boxsync.domain.model.source import DEFAULT_ARCHITECTURES, Architecture
from boxsync.domain.reconciliation import PrunePolicy, ReconcileOptions

from .env import optional_env_var, require_env_vars

if TYPE_CHECKING:
    from collections.abc import Iterable

USERNAME_ENV = "BOXSYNC_USERNAME"
FOOTER_ENV = "BOXSYNC_DESCRIPTION_FOOTER"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    """What to mirror and how.

    ``releases`` restricts the run to the named release directories; ``None``
    mirrors everything listed at the source root.
    """

    username: str
    dry_run: bool = False
    architectures: tuple[Architecture, ...] = DEFAULT_ARCHITECTURES
    prune_policy: PrunePolicy = PrunePolicy.REVOKE
    releases: frozenset[str] | None = None
    description_footer: str | None = None

    def reconcile_options(self) -> ReconcileOptions:
        return ReconcileOptions(
            username=self.username,
            dry_run=self.dry_run,
            prune_policy=self.prune_policy,
            description_footer=self.description_footer,
        )


def get_sync_config(
    *,
    username: str | None = None,
    dry_run: bool = False,
    prune_policy: PrunePolicy | None = None,
    releases: Iterable[str] | None = None,
) -> SyncConfig:
    if username is None or not username.strip():
        username = require_env_vars((USERNAME_ENV,))[USERNAME_ENV]
    return SyncConfig(
        username=username.strip(),
        dry_run=dry_run,
        prune_policy=prune_policy or PrunePolicy.REVOKE,
        releases=frozenset(releases) if releases else None,
        description_footer=optional_env_var(FOOTER_ENV),
    )
