"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from boxsync.adapters.catalog import CatalogClient
from boxsync.adapters.listing import HtmlDirectoryLister
from boxsync.config import get_catalog_config, get_source_config
from boxsync.domain.catalog_sync import SyncCatalogResult, sync_catalog
from boxsync.domain.reconciliation import ReleaseReconciler

if TYPE_CHECKING:
    from boxsync.config import CatalogConfig, SourceConfig, SyncConfig
    from boxsync.domain.ports import CatalogAPI, SourceLister


log = getLogger(__name__)


def mirror_releases(
    sync: SyncConfig,
    *,
    catalog: CatalogConfig | None = None,
    source: SourceConfig | None = None,
    api: CatalogAPI | None = None,
    lister: SourceLister | None = None,
) -> SyncCatalogResult:
    """Mirror the configured release tree into the catalog using the default adapters."""

    effective_source = source or get_source_config()
    effective_api = api or CatalogClient(
        config=catalog or get_catalog_config(require_token=not sync.dry_run)
    )
    effective_lister = lister or HtmlDirectoryLister(resilience=effective_source.resilience)
    reconciler = ReleaseReconciler(api=effective_api, options=sync.reconcile_options())

    log.info(
        "Starting catalog sync: source=%s, username=%s, architectures=%s, dry_run=%s",
        effective_source.root_url,
        sync.username,
        ",".join(architecture.label for architecture in sync.architectures),
        sync.dry_run,
    )

    result = sync_catalog(
        effective_source.root_url,
        lister=effective_lister,
        reconciler=reconciler,
        architectures=sync.architectures,
        codenames=effective_source.codenames,
        title_prefix=effective_source.title_prefix,
        releases=sync.releases,
    )

    log.info(
        "Finished catalog sync: releases=%d, boxes=%d, created=%d, added=%d, deleted=%d, "
        "revoked=%d",
        len(result.releases),
        len(result.boxes),
        result.created,
        result.added,
        result.deleted,
        result.revoked,
    )

    return result
