"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class VersionStatus(StrEnum):
    UNRELEASED = "unreleased"
    ACTIVE = "active"
    REVOKED = "revoked"


class ProviderName(StrEnum):
    VIRTUALBOX = "virtualbox"
    VMWARE_DESKTOP = "vmware_desktop"
    DIGITALOCEAN = "digitalocean"
    AWS = "aws"
    RACKSPACE = "rackspace"
    HYPERV = "hyperv"
