"""Reconcile one catalog box with the versions discovered for a release.

The reconciler fetches the box (creating it when the catalog reports it
missing), plans the prune and add passes and applies them in that order. Every
catalog error other than the not-found sentinel on the box fetch is fatal: it is
logged together with the operation in flight and re-raised, leaving changes
already applied in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from boxsync.domain.errors import CatalogError, CatalogNotFoundError
from boxsync.domain.model.catalog import Box

from .plan import ActionKind, plan_reconciliation

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from boxsync.domain.model.source import Architecture, Release
    from boxsync.domain.ports.catalog import CatalogAPI

    from .plan import PlannedAction
    from .policy import ReconcileOptions

log = getLogger(__name__)


@dataclass(slots=True)
class ReconcileResult:
    """What reconciliation did (or, in dry-run mode, would do) to one box."""

    box: str
    dry_run: bool = False
    created: bool = False
    added: list[str] = field(default_factory=list[str])
    resumed: list[str] = field(default_factory=list[str])
    deleted: list[str] = field(default_factory=list[str])
    revoked: list[str] = field(default_factory=list[str])
    kept: list[str] = field(default_factory=list[str])

    @property
    def changed(self) -> bool:
        return bool(
            self.created or self.added or self.resumed or self.deleted or self.revoked
        )


@dataclass(slots=True)
class ReleaseReconciler:
    """Drive one box per call through the Box/Version/Provider lifecycle."""

    api: CatalogAPI
    options: ReconcileOptions

    def reconcile(
        self,
        release: Release,
        architecture: Architecture,
        versions: Iterable[str],
    ) -> ReconcileResult:
        box = Box(
            api=self.api,
            username=self.options.username,
            name=release.box_name(architecture),
        )
        result = ReconcileResult(box=box.uri, dry_run=self.options.dry_run)
        result.created = self._resolve_box(box, release, architecture)

        existing = {version.version: version.status for version in box.versions}
        try:
            plan = plan_reconciliation(existing, versions, policy=self.options.prune_policy)
        except CatalogError:
            log.error("Failed to plan %s", box.uri)
            raise

        for action in plan.prune:
            self._prune(box, action, result)
        for action in plan.add:
            self._add(box, release, architecture, action, result)

        published = [*result.added, *result.resumed]
        if published:
            latest = next(a.version for a in reversed(plan.add) if a.version in published)
            box.short_description = release.title(architecture.label, latest)
            self._perform(f'update "{box.uri}": "{box.short_description}"', box.update)

        if not result.changed:
            log.debug("%s is up to date", box.uri)
        return result

    def _resolve_box(self, box: Box, release: Release, architecture: Architecture) -> bool:
        """Fetch ``box``; create it when missing. Return whether it was created."""

        try:
            box.fetch()
        except CatalogNotFoundError:
            log.debug("%s not found in catalog", box.uri)
        except CatalogError:
            log.error('Failed to fetch "%s"', box.uri)
            raise
        else:
            return False

        box.short_description = release.title(architecture.label)
        box.description_markdown = self.options.describe(release.url)
        self._perform(f'add "{box.uri}"', box.create)
        return True

    def _prune(self, box: Box, action: PlannedAction, result: ReconcileResult) -> None:
        version = box.find_version(action.version)
        if version is None:
            return
        if action.kind is ActionKind.DELETE:
            self._perform(f'delete "{version.uri}" Version: "{version.version}"', version.delete)
            result.deleted.append(action.version)
        elif action.kind is ActionKind.REVOKE:
            self._perform(f'revoke "{version.uri}" Version: "{version.version}"', version.revoke)
            result.revoked.append(action.version)
        elif action.kind is ActionKind.KEEP:
            log.warning(
                'Keeping %s version "%s" of "%s" that is no longer listed upstream',
                version.status,
                version.version,
                box.uri,
            )
            result.kept.append(action.version)

    def _add(
        self,
        box: Box,
        release: Release,
        architecture: Architecture,
        action: PlannedAction,
        result: ReconcileResult,
    ) -> None:
        if action.kind is ActionKind.SKIP:
            log.warning(
                'Version "%s" of "%s" was revoked and cannot be released again',
                action.version,
                box.uri,
            )
            return

        image = release.artifact_url(action.version, architecture)
        description = self.options.describe(image)
        provider = self.options.provider

        if self.options.dry_run:
            log.info(
                '[dry-run] %s "%s" Version: "%s" Url: "%s"',
                action.kind,
                box.uri,
                action.version,
                image,
            )
        else:
            version = self._run(
                f'add "{box.uri}" Version: "{action.version}"',
                lambda: box.ensure_version(action.version, description=description),
            )
            self._run(
                f'add "{version.uri}/provider/{provider}" Version: "{version.version}"',
                lambda: version.ensure_provider(provider, original_url=image),
            )
            self._run(
                f'public "{version.uri}" Version: "{version.version}" Url: "{image}"',
                version.release,
            )

        if action.kind is ActionKind.ADD:
            result.added.append(action.version)
        else:
            result.resumed.append(action.version)

    def _perform(self, todo: str, operation: Callable[[], None]) -> None:
        if self.options.dry_run:
            log.info("[dry-run] %s", todo)
            return
        self._run(todo, operation)

    @staticmethod
    def _run[T](todo: str, operation: Callable[[], T]) -> T:
        try:
            value = operation()
        except CatalogError:
            log.error("Failed to %s", todo)
            raise
        log.info(todo)
        return value
