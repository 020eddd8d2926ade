from __future__ import annotations

import os
from pathlib import Path  # noqa: TC003

import pytest

from boxsync.domain.model.source import Release
from boxsync.domain.reconciliation import ReconcileOptions, ReleaseReconciler
from tests.support.catalog import ROOT_URL, USERNAME, FakeCatalog


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in list(os.environ):
        if name.startswith("BOXSYNC_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("BOXSYNC_DATA_DIR", str(tmp_path / "data"))


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def xenial() -> Release:
    return Release(name="xenial", root_url=ROOT_URL)


@pytest.fixture
def reconciler(catalog: FakeCatalog) -> ReleaseReconciler:
    return ReleaseReconciler(api=catalog, options=ReconcileOptions(username=USERNAME))
