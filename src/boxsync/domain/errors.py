"""Errors raised while talking to the catalog or the release source.

Standard HTTP response codes are returned by the catalog. 404 is returned both
for missing resources and for resources the token has no access to, and is the
only error the sync flow recovers from (by creating the resource). Validation
failures carry per-field details::

    {"errors": {"name": ["has already been taken"]}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

type FieldErrors = Mapping[str, Sequence[str]]


class CatalogError(RuntimeError):
    """Base class for failures of a remote catalog call."""


class CatalogTransportError(CatalogError):
    """The request never produced an HTTP response (DNS, TLS, timeout, ...)."""


class CatalogResponseError(CatalogError):
    """The catalog answered with a body that is not the expected JSON object."""


class CatalogAPIError(CatalogError):
    """The catalog answered with a non-2xx status."""

    def __init__(
        self,
        reason: str,
        *,
        status_code: int,
        errors: FieldErrors | None = None,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code
        self.errors: FieldErrors = errors or {}

    def details(self) -> list[str]:
        """Return one ``field: message`` line per reported field error."""

        return [
            f"{name}: {message}" if name else message
            for name, messages in self.errors.items()
            for message in messages
        ]

    def __str__(self) -> str:
        details = self.details()
        if not details:
            return self.reason
        return f"{self.reason} ({'; '.join(details)})"


class CatalogNotFoundError(CatalogAPIError):
    """404: the resource does not exist or is not visible to the token."""


class VersionLifecycleError(CatalogError):
    """A version lifecycle transition that the catalog forbids was requested."""


class SourceListingError(RuntimeError):
    """A release listing could not be fetched or parsed."""
