"""Fan one discovered release out to its per-architecture boxes."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from boxsync.domain.model.source import Architecture, Release

    from .engine import ReconcileResult, ReleaseReconciler

log = getLogger(__name__)


def sync_release(
    release: Release,
    versions: Sequence[str],
    *,
    reconciler: ReleaseReconciler,
    architectures: Sequence[Architecture],
) -> list[ReconcileResult]:
    """Reconcile every architecture box of ``release`` in configured order.

    Boxes are independent: an error aborts the remaining architectures but leaves
    the boxes already reconciled as they are.
    """

    log.debug("Release %s: %d versions discovered", release.name, len(versions))
    return [
        reconciler.reconcile(release, architecture, versions) for architecture in architectures
    ]
