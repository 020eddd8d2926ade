from __future__ import annotations

import logging

import pytest

from boxsync.app import mirror_releases
from boxsync.config import SourceConfig, SyncConfig
from boxsync.domain.model import DEFAULT_ARCHITECTURES, VersionStatus
from tests.support.catalog import ROOT_URL, USERNAME, FakeCatalog, FakeLister


def test_mirror_releases_wires_configuration(caplog: pytest.LogCaptureFixture) -> None:
    catalog = FakeCatalog()
    catalog.seed_box(USERNAME, "bionic64", {"20201201": VersionStatus.ACTIVE})
    lister = FakeLister({ROOT_URL: ["bionic"], f"{ROOT_URL}bionic/": ["20210101"]})
    sync = SyncConfig(
        username=USERNAME,
        architectures=DEFAULT_ARCHITECTURES[:1],
        description_footer="footer",
    )
    caplog.set_level(logging.INFO)

    result = mirror_releases(
        sync,
        source=SourceConfig(root_url=ROOT_URL, codenames={"bionic": "bionic beaver"}),
        api=catalog,
        lister=lister,
    )

    assert result.releases == ["bionic"]
    assert result.added == 1
    assert result.revoked == 1
    box = catalog.boxes[(USERNAME, "bionic64")]
    assert box.short_description == (
        "Official Ubuntu Server Bionic Beaver amd64 builds (latest 20210101)"
    )
    assert box.versions[-1].description.endswith("\n\nfooter")
    assert "Finished catalog sync: releases=1, boxes=1" in caplog.text


def test_mirror_releases_dry_run_leaves_catalog_untouched() -> None:
    catalog = FakeCatalog()
    lister = FakeLister({ROOT_URL: ["focal"], f"{ROOT_URL}focal/": ["20210101"]})

    result = mirror_releases(
        SyncConfig(username=USERNAME, dry_run=True),
        source=SourceConfig(root_url=ROOT_URL),
        api=catalog,
        lister=lister,
    )

    assert result.created == 2
    assert result.added == 2
    assert catalog.mutations == []
