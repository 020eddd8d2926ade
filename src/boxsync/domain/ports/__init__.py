"""Domain port definitions for adapters."""

from __future__ import annotations

from .catalog import CatalogAPI, Payload
from .listing import SourceLister

__all__ = ["CatalogAPI", "Payload", "SourceLister"]
