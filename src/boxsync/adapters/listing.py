"""Directory-listing source: child names of an HTML index page."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlsplit

import httpx
from bs4 import BeautifulSoup

from boxsync.adapters.http_resilience import ResilientClient, http_get_resilient
from boxsync.domain.errors import SourceListingError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from boxsync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

# "current" aliases the newest build; ".." is the parent directory.
DEFAULT_EXCLUDED: frozenset[str] = frozenset({"current", "..", "."})


def is_child_link(href: str, *, directories_only: bool = True) -> bool:
    """Return whether ``href`` points at a direct child of the listed page.

    Absolute paths, absolute URLs, query strings (column sort links) and
    fragments are rejected.
    """

    if not href or href.startswith(("/", "?", "#")):
        return False
    parsed = urlsplit(href)
    if parsed.scheme or parsed.netloc or parsed.query or parsed.fragment:
        return False
    return href.endswith("/") if directories_only else True


def child_names(
    hrefs: Iterable[str],
    *,
    directories_only: bool = True,
    excluded: frozenset[str] = DEFAULT_EXCLUDED,
) -> list[str]:
    """Filter anchor targets down to unique child names, in listing order."""

    names: list[str] = []
    for href in hrefs:
        if not is_child_link(href, directories_only=directories_only):
            continue
        name = unquote(href.strip("/"))
        if not name or name in excluded:
            continue
        names.append(name)
    return list(dict.fromkeys(names))


def parse_listing(html: str) -> list[str]:
    """Return the ``href`` of every anchor element of an HTML page."""

    soup = BeautifulSoup(html, "html.parser")
    hrefs: list[str] = []
    for anchor in soup.find_all("a"):
        href = anchor.get("href")
        if isinstance(href, str):
            hrefs.append(href.strip())
    return hrefs


class HtmlDirectoryLister:
    """List the children of web-server generated directory index pages."""

    def __init__(
        self,
        *,
        resilience: ResilienceConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        excluded: frozenset[str] = DEFAULT_EXCLUDED,
    ) -> None:
        self._resilience = resilience
        self._client_factory = client_factory or ResilientClient
        self._excluded = excluded

    def __call__(self, url: str, *, directories_only: bool = True) -> list[str]:
        html = asyncio.run(self._fetch(url))
        names = child_names(
            parse_listing(html),
            directories_only=directories_only,
            excluded=self._excluded,
        )
        log.debug("Listed %d entries at %s", len(names), url)
        return names

    async def _fetch(self, url: str) -> str:
        try:
            response = await http_get_resilient(
                self._resilience,
                url,
                client_factory=self._client_factory,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SourceListingError(f"Cannot list {url}: {exc}") from exc
        return response.text
