"""Pure planning step: compare discovered identifiers with catalog versions.

Version identifiers are opaque tokens; membership is exact string equality and
no semantic-version ordering is applied. Prune actions always precede add
actions so a box never sees an identifier deleted after it was re-created.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from boxsync.domain.errors import VersionLifecycleError
from boxsync.domain.model.enums import VersionStatus

from .policy import PrunePolicy

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


class ActionKind(StrEnum):
    DELETE = "delete"
    REVOKE = "revoke"
    KEEP = "keep"
    ADD = "add"
    RESUME = "resume"
    SKIP = "skip"


MUTATING_ACTIONS = frozenset(
    {ActionKind.DELETE, ActionKind.REVOKE, ActionKind.ADD, ActionKind.RESUME}
)


@dataclass(frozen=True, slots=True)
class PlannedAction:
    kind: ActionKind
    version: str
    status: VersionStatus | None = None

    @property
    def mutating(self) -> bool:
        return self.kind in MUTATING_ACTIONS


@dataclass(slots=True)
class ReconcilePlan:
    """Ordered actions for one box: the prune pass, then the add pass."""

    prune: list[PlannedAction] = field(default_factory=list["PlannedAction"])
    add: list[PlannedAction] = field(default_factory=list["PlannedAction"])

    @property
    def actions(self) -> tuple[PlannedAction, ...]:
        return (*self.prune, *self.add)

    @property
    def is_noop(self) -> bool:
        return not any(action.mutating for action in self.actions)


def plan_reconciliation(
    existing: Mapping[str, VersionStatus],
    discovered: Iterable[str],
    *,
    policy: PrunePolicy = PrunePolicy.REVOKE,
) -> ReconcilePlan:
    """Plan the actions that make ``existing`` reflect ``discovered``.

    ``existing`` maps the box's version strings to their status, in catalog
    order. Raises ``VersionLifecycleError`` under ``PrunePolicy.STRICT`` when an
    active version would have to be retracted.
    """

    wanted = list(dict.fromkeys(discovered))
    wanted_set = set(wanted)
    plan = ReconcilePlan()

    stale_active: list[str] = []
    for version, status in existing.items():
        if version in wanted_set:
            continue
        if status is VersionStatus.UNRELEASED:
            plan.prune.append(PlannedAction(ActionKind.DELETE, version, status))
        elif status is VersionStatus.ACTIVE:
            if policy is PrunePolicy.REVOKE:
                plan.prune.append(PlannedAction(ActionKind.REVOKE, version, status))
            elif policy is PrunePolicy.KEEP:
                plan.prune.append(PlannedAction(ActionKind.KEEP, version, status))
            else:
                stale_active.append(version)
        # revoked versions are already retracted

    if stale_active:
        listed = ", ".join(repr(version) for version in stale_active)
        raise VersionLifecycleError(
            f"Released versions {listed} are no longer listed upstream and cannot be deleted"
        )

    for version in wanted:
        status = existing.get(version)
        if status is None:
            plan.add.append(PlannedAction(ActionKind.ADD, version))
        elif status is VersionStatus.UNRELEASED:
            plan.add.append(PlannedAction(ActionKind.RESUME, version, status))
        elif status is VersionStatus.REVOKED:
            plan.add.append(PlannedAction(ActionKind.SKIP, version, status))

    return plan
