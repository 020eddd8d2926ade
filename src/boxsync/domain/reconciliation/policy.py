"""Options and lifecycle policy for reconciling one box.

Pruning a version that is no longer listed upstream depends on its status:

- ``unreleased`` versions are deleted,
- ``revoked`` versions are terminal and left as they are,
- ``active`` versions cannot be deleted; ``PrunePolicy`` decides whether they
  are revoked, kept, or whether reconciliation of the box fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from boxsync.domain.model.enums import ProviderName


class PrunePolicy(StrEnum):
    REVOKE = "revoke"
    KEEP = "keep"
    STRICT = "strict"


@dataclass(frozen=True, slots=True)
class ReconcileOptions:
    """Explicit settings for the reconciler, in place of process-wide flags.

    ``dry_run`` suppresses every mutating catalog call and logs the intended
    action instead; reads (the box fetch) still happen.
    """

    username: str
    dry_run: bool = False
    prune_policy: PrunePolicy = PrunePolicy.REVOKE
    provider: ProviderName = ProviderName.VIRTUALBOX
    description_footer: str | None = None

    def describe(self, text: str) -> str:
        """Append the configured footer to a generated markdown description."""

        if not self.description_footer:
            return text
        return f"{text}\n\n{self.description_footer}"
