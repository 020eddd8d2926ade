"""Remote catalog (Vagrant Cloud API v1) adapter."""

from __future__ import annotations

from .client import CatalogClient
from .schema import CatalogErrorResponse

__all__ = ["CatalogClient", "CatalogErrorResponse"]
