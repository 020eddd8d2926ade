from __future__ import annotations

import logging

import pytest

from boxsync.domain.errors import CatalogAPIError, VersionLifecycleError
from boxsync.domain.model import DEFAULT_ARCHITECTURES, Release, VersionStatus
from boxsync.domain.reconciliation import PrunePolicy, ReconcileOptions, ReleaseReconciler
from tests.support.catalog import ROOT_URL, USERNAME, FakeCatalog

AMD64 = DEFAULT_ARCHITECTURES[0]
BOX_URI = "/box/ubuntu/xenial64"
IMAGE = f"{ROOT_URL}xenial/20210201/xenial-server-cloudimg-amd64-vagrant-disk1.box"


def _reconciler(catalog: FakeCatalog, **options: object) -> ReleaseReconciler:
    return ReleaseReconciler(
        api=catalog,
        options=ReconcileOptions(username=USERNAME, **options),  # type: ignore[arg-type]
    )


def test_reconcile_revokes_stale_and_publishes_new(
    catalog: FakeCatalog,
    reconciler: ReleaseReconciler,
    xenial: Release,
    caplog: pytest.LogCaptureFixture,
) -> None:
    catalog.seed_box(
        USERNAME,
        "xenial64",
        {"20201201": VersionStatus.ACTIVE, "20210101": VersionStatus.ACTIVE},
    )
    caplog.set_level(logging.INFO)

    result = reconciler.reconcile(xenial, AMD64, ["20210101", "20210201"])

    assert result.created is False
    assert result.revoked == ["20201201"]
    assert result.added == ["20210201"]
    assert result.changed
    assert catalog.statuses(USERNAME, "xenial64") == {
        "20201201": VersionStatus.REVOKED,
        "20210101": VersionStatus.ACTIVE,
        "20210201": VersionStatus.ACTIVE,
    }
    assert catalog.mutations == [
        ("PUT", f"{BOX_URI}/version/1/revoke"),
        ("POST", f"{BOX_URI}/versions"),
        ("POST", f"{BOX_URI}/version/3/providers"),
        ("PUT", f"{BOX_URI}/version/3/release"),
        ("PUT", BOX_URI),
    ]
    box = catalog.boxes[(USERNAME, "xenial64")]
    assert box.short_description == "Official Ubuntu Server Xenial amd64 builds (latest 20210201)"
    new_version = box.versions[-1]
    assert new_version.providers == {"virtualbox": IMAGE}
    assert new_version.description == IMAGE

    messages = [record.getMessage() for record in caplog.records]
    assert f'revoke "{BOX_URI}/version/1" Version: "20201201"' in messages
    assert f'add "{BOX_URI}" Version: "20210201"' in messages
    assert f'add "{BOX_URI}/version/3/provider/virtualbox" Version: "20210201"' in messages
    assert f'public "{BOX_URI}/version/3" Version: "20210201" Url: "{IMAGE}"' in messages


def test_reconcile_creates_missing_box(
    catalog: FakeCatalog, reconciler: ReleaseReconciler, xenial: Release
) -> None:
    result = reconciler.reconcile(xenial, AMD64, ["20210101", "20210201"])

    assert result.created is True
    assert result.added == ["20210101", "20210201"]
    assert catalog.calls[1] == (
        "POST",
        "/boxes",
        {
            "box[name]": "xenial64",
            "box[username]": "ubuntu",
            "box[short_description]": "Official Ubuntu Server Xenial amd64 builds",
            "box[description]": f"{ROOT_URL}xenial/",
        },
    )
    assert catalog.statuses(USERNAME, "xenial64") == {
        "20210101": VersionStatus.ACTIVE,
        "20210201": VersionStatus.ACTIVE,
    }
    box = catalog.boxes[(USERNAME, "xenial64")]
    assert box.short_description.endswith("(latest 20210201)")


def test_descriptions_carry_configured_footer(catalog: FakeCatalog, xenial: Release) -> None:
    footer = "see https://github.com/example/boxsync"
    reconciler = _reconciler(catalog, description_footer=footer)

    reconciler.reconcile(xenial, AMD64, ["20210201"])

    box = catalog.boxes[(USERNAME, "xenial64")]
    assert box.description == f"{ROOT_URL}xenial/\n\n{footer}"
    assert box.versions[0].description == f"{IMAGE}\n\n{footer}"


def test_second_run_is_read_only(
    catalog: FakeCatalog, reconciler: ReleaseReconciler, xenial: Release
) -> None:
    catalog.seed_box(USERNAME, "xenial64", {"20201201": VersionStatus.ACTIVE})
    reconciler.reconcile(xenial, AMD64, ["20210101", "20210201"])
    before = len(catalog.calls)

    result = reconciler.reconcile(xenial, AMD64, ["20210101", "20210201"])

    assert not result.changed
    assert catalog.calls[before:] == [("GET", BOX_URI, {})]


def test_dry_run_only_reads(
    catalog: FakeCatalog, xenial: Release, caplog: pytest.LogCaptureFixture
) -> None:
    catalog.seed_box(
        USERNAME,
        "xenial64",
        {"20201201": VersionStatus.ACTIVE, "20201215": VersionStatus.UNRELEASED},
    )
    reconciler = _reconciler(catalog, dry_run=True)
    caplog.set_level(logging.INFO)

    result = reconciler.reconcile(xenial, AMD64, ["20210101"])

    assert result.dry_run is True
    assert result.revoked == ["20201201"]
    assert result.deleted == ["20201215"]
    assert result.added == ["20210101"]
    assert catalog.mutations == []
    assert any(record.getMessage().startswith("[dry-run]") for record in caplog.records)


def test_dry_run_with_missing_box_plans_every_version(
    catalog: FakeCatalog, xenial: Release
) -> None:
    result = _reconciler(catalog, dry_run=True).reconcile(xenial, AMD64, ["20210101"])

    assert result.created is True
    assert result.added == ["20210101"]
    assert catalog.calls == [("GET", BOX_URI, {})]
    assert (USERNAME, "xenial64") not in catalog.boxes


def test_stale_unreleased_version_is_deleted(
    catalog: FakeCatalog, reconciler: ReleaseReconciler, xenial: Release
) -> None:
    catalog.seed_box(
        USERNAME,
        "xenial64",
        {"20201201": VersionStatus.UNRELEASED, "20210101": VersionStatus.ACTIVE},
    )

    result = reconciler.reconcile(xenial, AMD64, ["20210101"])

    assert result.deleted == ["20201201"]
    assert catalog.mutations == [("DELETE", f"{BOX_URI}/version/1")]


def test_keep_policy_leaves_active_versions(
    catalog: FakeCatalog, xenial: Release, caplog: pytest.LogCaptureFixture
) -> None:
    catalog.seed_box(USERNAME, "xenial64", {"20201201": VersionStatus.ACTIVE})

    result = _reconciler(catalog, prune_policy=PrunePolicy.KEEP).reconcile(xenial, AMD64, [])

    assert result.kept == ["20201201"]
    assert not result.changed
    assert catalog.mutations == []
    assert "no longer listed upstream" in caplog.text


def test_strict_policy_fails_before_any_mutation(
    catalog: FakeCatalog, xenial: Release, caplog: pytest.LogCaptureFixture
) -> None:
    catalog.seed_box(
        USERNAME,
        "xenial64",
        {"20201201": VersionStatus.ACTIVE, "20201215": VersionStatus.UNRELEASED},
    )

    with pytest.raises(VersionLifecycleError):
        _reconciler(catalog, prune_policy=PrunePolicy.STRICT).reconcile(
            xenial, AMD64, ["20210101"]
        )

    assert catalog.mutations == []
    assert f"Failed to plan {BOX_URI}" in caplog.text


def test_unreleased_version_is_resumed(
    catalog: FakeCatalog, reconciler: ReleaseReconciler, xenial: Release
) -> None:
    catalog.seed_box(USERNAME, "xenial64", {"20210201": VersionStatus.UNRELEASED})

    result = reconciler.reconcile(xenial, AMD64, ["20210201"])

    assert result.resumed == ["20210201"]
    assert result.added == []
    assert catalog.mutations == [
        ("PUT", f"{BOX_URI}/version/1"),
        ("POST", f"{BOX_URI}/version/1/providers"),
        ("PUT", f"{BOX_URI}/version/1/release"),
        ("PUT", BOX_URI),
    ]
    assert catalog.statuses(USERNAME, "xenial64") == {"20210201": VersionStatus.ACTIVE}


def test_revoked_version_is_not_released_again(
    catalog: FakeCatalog,
    reconciler: ReleaseReconciler,
    xenial: Release,
    caplog: pytest.LogCaptureFixture,
) -> None:
    catalog.seed_box(USERNAME, "xenial64", {"20210201": VersionStatus.REVOKED})

    result = reconciler.reconcile(xenial, AMD64, ["20210201"])

    assert not result.changed
    assert catalog.mutations == []
    assert "cannot be released again" in caplog.text


def test_catalog_error_aborts_box_and_keeps_applied_changes(
    catalog: FakeCatalog,
    reconciler: ReleaseReconciler,
    xenial: Release,
    caplog: pytest.LogCaptureFixture,
) -> None:
    catalog.seed_box(USERNAME, "xenial64", {"20201201": VersionStatus.ACTIVE})
    catalog.fail(
        "POST",
        f"{BOX_URI}/versions",
        CatalogAPIError(
            "422 Unprocessable Entity",
            status_code=422,
            errors={"name": ["has already been taken"]},
        ),
    )

    with pytest.raises(CatalogAPIError) as excinfo:
        reconciler.reconcile(xenial, AMD64, ["20210201"])

    assert excinfo.value.details() == ["name: has already been taken"]
    assert "name: has already been taken" in str(excinfo.value)
    assert f'Failed to add "{BOX_URI}" Version: "20210201"' in caplog.text
    assert catalog.statuses(USERNAME, "xenial64") == {"20201201": VersionStatus.REVOKED}
    assert ("PUT", BOX_URI) not in catalog.mutations


def test_fetch_error_other_than_not_found_is_fatal(
    catalog: FakeCatalog, reconciler: ReleaseReconciler, xenial: Release
) -> None:
    catalog.fail(
        "GET",
        BOX_URI,
        CatalogAPIError("500 Internal Server Error", status_code=500),
    )

    with pytest.raises(CatalogAPIError) as excinfo:
        reconciler.reconcile(xenial, AMD64, ["20210201"])

    assert excinfo.value.status_code == 500
    assert catalog.mutations == []
