"""Application service mirroring a release tree into the catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from boxsync.domain.model.source import DEFAULT_TITLE_PREFIX, Release
from boxsync.domain.reconciliation import sync_release

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping, Sequence

    from boxsync.domain.model.source import Architecture
    from boxsync.domain.ports.listing import SourceLister
    from boxsync.domain.reconciliation import ReconcileResult, ReleaseReconciler

log = getLogger(__name__)


@dataclass(slots=True)
class SyncCatalogResult:
    """Outcome of a catalog sync run."""

    releases: list[str] = field(default_factory=list[str])
    boxes: list[ReconcileResult] = field(default_factory=list["ReconcileResult"])

    @property
    def created(self) -> int:
        return sum(1 for box in self.boxes if box.created)

    @property
    def added(self) -> int:
        return sum(len(box.added) + len(box.resumed) for box in self.boxes)

    @property
    def deleted(self) -> int:
        return sum(len(box.deleted) for box in self.boxes)

    @property
    def revoked(self) -> int:
        return sum(len(box.revoked) for box in self.boxes)


def discover_releases(
    root_url: str,
    *,
    lister: SourceLister,
    codenames: Mapping[str, str] | None = None,
    title_prefix: str = DEFAULT_TITLE_PREFIX,
    selection: Collection[str] | None = None,
) -> list[Release]:
    """List the release directories under ``root_url``, optionally restricted to ``selection``."""

    names = lister(root_url)
    if selection is not None:
        missing = sorted(set(selection).difference(names))
        if missing:
            log.warning("Selected releases not listed at %s: %s", root_url, ", ".join(missing))
        names = [name for name in names if name in selection]
    display = codenames or {}
    return [
        Release(
            name=name,
            root_url=root_url,
            display_name=display.get(name),
            title_prefix=title_prefix,
        )
        for name in names
    ]


def sync_catalog(
    root_url: str,
    *,
    lister: SourceLister,
    reconciler: ReleaseReconciler,
    architectures: Sequence[Architecture],
    codenames: Mapping[str, str] | None = None,
    title_prefix: str = DEFAULT_TITLE_PREFIX,
    releases: Collection[str] | None = None,
) -> SyncCatalogResult:
    """Discover releases and reconcile every release/architecture box in order.

    Discovery of a release's versions completes before any of its boxes is
    touched. The first error aborts the run.
    """

    result = SyncCatalogResult()
    for release in discover_releases(
        root_url,
        lister=lister,
        codenames=codenames,
        title_prefix=title_prefix,
        selection=releases,
    ):
        versions = lister(release.url)
        result.releases.append(release.name)
        result.boxes.extend(
            sync_release(
                release,
                versions,
                reconciler=reconciler,
                architectures=architectures,
            )
        )
    return result
