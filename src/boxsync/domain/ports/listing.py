"""Port for discovering child entries of an external release tree."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SourceLister(Protocol):
    """Callable port returning the child names listed at ``url``.

    The result is finite, free of duplicates and in listing order. Failures raise
    :class:`boxsync.domain.errors.SourceListingError`.
    """

    def __call__(self, url: str, *, directories_only: bool = True) -> list[str]: ...


__all__ = ["SourceLister"]
