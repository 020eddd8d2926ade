from __future__ import annotations

from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from boxsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from boxsync.adapters.listing import (
    HtmlDirectoryLister,
    child_names,
    is_child_link,
    parse_listing,
)
from boxsync.domain.errors import SourceListingError
from boxsync.domain.ports import SourceLister

INDEX_HTML = """
<html>
  <head><title>Index of /vagrant</title></head>
  <body>
    <h1>Index of /vagrant</h1>
    <table>
      <tr>
        <th><a href="?C=N;O=D">Name</a></th>
        <th><a href="?C=M;O=A">Last modified</a></th>
      </tr>
      <tr><td><a href="/">Parent Directory</a></td></tr>
      <tr><td><a href="current/">current/</a></td></tr>
      <tr><td><a href="trusty/">trusty/</a></td></tr>
      <tr><td><a href="xenial/">xenial/</a></td></tr>
      <tr><td><a href="https://elsewhere.example.test/">mirror</a></td></tr>
      <tr><td><a href="SHA256SUMS">SHA256SUMS</a></td></tr>
    </table>
  </body>
</html>
"""


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    return factory


def _lister(handler: Callable[[httpx.Request], httpx.Response]) -> HtmlDirectoryLister:
    return HtmlDirectoryLister(
        resilience=ResilienceConfig(name="source-test", cache=None),
        client_factory=_make_client_factory(handler),
    )


def test_child_names_keep_relative_directories() -> None:
    hrefs = ["current/", "16.04/", "?C=N", "/absolute/", "18.04/"]

    assert child_names(hrefs) == ["16.04", "18.04"]


@pytest.mark.parametrize(
    ("href", "expected"),
    [
        ("xenial/", True),
        ("xenial", False),
        ("/xenial/", False),
        ("?C=N;O=D", False),
        ("#top", False),
        ("https://example.test/xenial/", False),
        ("//example.test/xenial/", False),
        ("xenial/?C=N", False),
        ("", False),
    ],
)
def test_is_child_link(href: str, expected: bool) -> None:
    assert is_child_link(href) is expected


def test_files_are_listed_when_not_restricted_to_directories() -> None:
    names = child_names(["20210101/", "SHA256SUMS", "../", "current"], directories_only=False)

    assert names == ["20210101", "SHA256SUMS"]


def test_child_names_unquotes_and_deduplicates() -> None:
    assert child_names(["a%20b/", "c/", "a%20b/"]) == ["a b", "c"]


def test_parse_listing_collects_anchor_targets() -> None:
    hrefs = parse_listing(INDEX_HTML)

    assert hrefs[:3] == ["?C=N;O=D", "?C=M;O=A", "/"]
    assert "xenial/" in hrefs
    assert len(hrefs) == 8


def test_lister_fetches_and_filters_index() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=INDEX_HTML)

    lister = _lister(handler)
    names = lister("https://images.example.test/vagrant/")

    assert isinstance(lister, SourceLister)
    assert names == ["trusty", "xenial"]
    assert str(seen[0].url) == "https://images.example.test/vagrant/"
    assert lister("https://images.example.test/vagrant/", directories_only=False) == [
        "trusty",
        "xenial",
        "SHA256SUMS",
    ]


def test_lister_http_error_is_listing_error() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="missing")

    with pytest.raises(SourceListingError, match="Cannot list"):
        _lister(handler)("https://images.example.test/vagrant/nope/")


def test_lister_transport_error_is_listing_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(SourceListingError, match="timed out"):
        _lister(handler)("https://images.example.test/vagrant/")
