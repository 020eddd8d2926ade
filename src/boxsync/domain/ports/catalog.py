"""Port for the authenticated remote catalog API."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from typing import BinaryIO

type Payload = Mapping[str, Any]


@runtime_checkable
class CatalogAPI(Protocol):
    """Request/response primitive against the catalog.

    ``uri`` arguments are resource paths relative to the API root
    (``/box/{username}/{name}``). Implementations attach the access credential,
    decode JSON object bodies and raise :mod:`boxsync.domain.errors` exceptions
    for anything else.
    """

    def get(self, uri: str) -> Payload: ...

    def post(self, uri: str, fields: Mapping[str, str]) -> Payload: ...

    def put(self, uri: str, fields: Mapping[str, str] | None = None) -> Payload: ...

    def delete(self, uri: str) -> Payload: ...

    def upload(self, uri: str, data: BinaryIO) -> Payload: ...

    def download(self, path: str, sink: BinaryIO) -> int:
        """Stream a public (non-API) path into ``sink``; return the byte count."""
        ...


__all__ = ["CatalogAPI", "Payload"]
