"""Domain model public API."""

from __future__ import annotations

from .catalog import Box, Provider, Version
from .enums import ProviderName, VersionStatus
from .source import DEFAULT_ARCHITECTURES, Architecture, Release

__all__ = [
    "DEFAULT_ARCHITECTURES",
    "Architecture",
    "Box",
    "Provider",
    "ProviderName",
    "Release",
    "Version",
    "VersionStatus",
]
