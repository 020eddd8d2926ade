"""Catalog resources: Box → Version → Provider.

Ownership lives on the parent: a Box owns its Versions and a Version owns its
Providers. Children keep a non-owning reference to their parent, used only to
derive URIs and to reach the catalog API.

Records are materialized from catalog responses only (``fetch``/``create``/
``update``); nothing is persisted locally between runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from boxsync.domain.errors import CatalogResponseError, VersionLifecycleError
from boxsync.domain.model.enums import ProviderName, VersionStatus

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import BinaryIO

    from boxsync.domain.ports.catalog import CatalogAPI, Payload


def _text(payload: Payload, key: str, default: str) -> str:
    value = payload.get(key, default)
    return default if value is None else str(value)


def _timestamp(payload: Payload, key: str) -> datetime | None:
    value = payload.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise CatalogResponseError(f"Invalid {key!r} timestamp: {value!r}")
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise CatalogResponseError(f"Invalid {key!r} timestamp: {value!r}") from exc


def _records(payload: Payload, key: str) -> list[Mapping[str, Any]]:
    value = payload.get(key) or []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise CatalogResponseError(f"Expected a list of objects for {key!r}")
    return value


@dataclass(eq=False, kw_only=True)
class Box:
    """Top-level named container, identified by ``(username, name)``."""

    api: CatalogAPI = field(repr=False)
    username: str
    name: str
    tag: str = ""
    short_description: str = ""
    description_markdown: str = ""
    description_html: str = ""
    private: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    current_version: Version | None = field(default=None, repr=False)

    # Owned children
    _versions: list[Version] = field(default_factory=list["Version"], init=False, repr=False)

    @property
    def uri(self) -> str:
        return f"/box/{self.username}/{self.name}"

    @property
    def versions(self) -> tuple[Version, ...]:
        return tuple(self._versions)

    def find_version(self, version: str) -> Version | None:
        for candidate in self._versions:
            if candidate.version == version:
                return candidate
        return None

    def version(self, number: int) -> Version:
        """Return a handle for an existing version number (call ``fetch`` to load it)."""

        return Version(box=self, number=number)

    # Remote operations

    def fetch(self) -> None:
        """Retrieve the box; raises ``CatalogNotFoundError`` when it does not exist."""

        self._apply(self.api.get(self.uri))

    def create(self) -> None:
        fields = {"box[name]": self.name}
        if self.username:
            fields["box[username]"] = self.username
        if self.short_description:
            fields["box[short_description]"] = self.short_description
        if self.description_markdown:
            fields["box[description]"] = self.description_markdown
        if self.private:
            fields["box[is_private]"] = "true"
        self._apply(self.api.post("/boxes", fields))

    def update(self) -> None:
        fields = {
            "box[short_description]": self.short_description,
            "box[description]": self.description_markdown,
            "box[is_private]": "true" if self.private else "false",
        }
        self._apply(self.api.put(self.uri, fields))

    def delete(self) -> None:
        self.api.delete(self.uri)
        self._versions.clear()
        self.current_version = None

    def ensure_version(self, version: str, *, description: str = "") -> Version:
        """Create ``version`` unless it already exists, in which case update it.

        A version string is unique within a box, so a second create would only be
        rejected by the catalog.
        """

        existing = self.find_version(version)
        if existing is None:
            created = Version(box=self, version=version, description_markdown=description)
            created.create()
            return created
        if description and existing.description_markdown != description:
            existing.description_markdown = description
            existing.update()
        return existing

    # Friend primitives (called by owned versions)

    def _adopt(self, version: Version) -> None:
        self._versions = [v for v in self._versions if v.version != version.version]
        self._versions.append(version)

    def _forget(self, version: Version) -> None:
        self._versions = [v for v in self._versions if v is not version]

    def _apply(self, payload: Payload) -> None:
        self.tag = _text(payload, "tag", self.tag)
        self.username = _text(payload, "username", self.username)
        self.name = _text(payload, "name", self.name)
        self.short_description = _text(payload, "short_description", self.short_description)
        self.description_markdown = _text(
            payload, "description_markdown", self.description_markdown
        )
        self.description_html = _text(payload, "description_html", self.description_html)
        self.private = bool(payload.get("private", self.private))
        self.created_at = _timestamp(payload, "created_at") or self.created_at
        self.updated_at = _timestamp(payload, "updated_at") or self.updated_at
        current = payload.get("current_version")
        if isinstance(current, dict):
            self.current_version = Version.from_payload(self, current)
        elif "current_version" in payload:
            self.current_version = None
        if "versions" in payload:
            self._versions = [
                Version.from_payload(self, item) for item in _records(payload, "versions")
            ]


@dataclass(eq=False, kw_only=True)
class Version:
    """One release of a box with a ``unreleased → active → revoked`` lifecycle.

    ``version`` must look like a semantic version; the catalog only checks the
    pattern, not the ordering relative to other versions. ``number`` is assigned
    by the catalog on creation and is what the resource URI is built from.
    """

    box: Box = field(repr=False)
    version: str = ""
    number: int | None = None
    status: VersionStatus = VersionStatus.UNRELEASED
    description_markdown: str = ""
    description_html: str = ""
    downloads: int = 0
    release_url: str = ""
    revoke_url: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # Owned children
    _providers: list[Provider] = field(
        default_factory=list["Provider"], init=False, repr=False
    )

    @classmethod
    def from_payload(cls, box: Box, payload: Payload) -> Version:
        version = cls(box=box)
        version._apply(payload)
        return version

    @property
    def api(self) -> CatalogAPI:
        return self.box.api

    @property
    def uri(self) -> str:
        if self.number is None:
            raise ValueError(f"Version {self.version!r} has no catalog number yet")
        return f"{self.box.uri}/version/{self.number}"

    @property
    def providers(self) -> tuple[Provider, ...]:
        return tuple(self._providers)

    def find_provider(self, name: ProviderName) -> Provider | None:
        for candidate in self._providers:
            if candidate.name == name:
                return candidate
        return None

    def provider(self, name: ProviderName) -> Provider:
        """Return a handle for a provider of this version (call ``fetch`` to load it)."""

        return Provider(version=self, name=name)

    # Remote operations

    def fetch(self) -> None:
        self._apply(self.api.get(self.uri))

    def create(self) -> None:
        """Create the version; the catalog sets its status to ``unreleased``."""

        fields = {"version[version]": self.version}
        if self.description_markdown:
            fields["version[description]"] = self.description_markdown
        self._apply(self.api.post(f"{self.box.uri}/versions", fields))
        self.box._adopt(self)  # noqa: SLF001

    def update(self) -> None:
        # The status cannot be modified here; see release() and revoke().
        fields = {"version[description]": self.description_markdown}
        self._apply(self.api.put(self.uri, fields))

    def delete(self) -> None:
        """Delete an unreleased version.

        Released versions can no longer be deleted, only revoked; this is rejected
        locally instead of relying on the catalog to refuse the request.
        """

        if self.status is not VersionStatus.UNRELEASED:
            raise VersionLifecycleError(
                f"Cannot delete {self.status} version {self.version!r} of {self.box.uri}; "
                "revoke it instead"
            )
        self.api.delete(self.uri)
        self.box._forget(self)  # noqa: SLF001

    def release(self) -> None:
        """Move an unreleased version to ``active``."""

        self._require_status(VersionStatus.UNRELEASED, action="release")
        self._apply(self.api.put(f"{self.uri}/release"))

    def revoke(self) -> None:
        """Move an active version to ``revoked``, keeping its history."""

        self._require_status(VersionStatus.ACTIVE, action="revoke")
        self._apply(self.api.put(f"{self.uri}/revoke"))

    def ensure_provider(self, name: ProviderName, *, original_url: str = "") -> Provider:
        """Create provider ``name`` or, when it already exists, update its URL."""

        existing = self.find_provider(name)
        if existing is None:
            created = Provider(version=self, name=name, original_url=original_url)
            created.create()
            return created
        if existing.original_url != original_url:
            existing.original_url = original_url
            existing.update()
        return existing

    def _require_status(self, expected: VersionStatus, *, action: str) -> None:
        if self.status is not expected:
            raise VersionLifecycleError(
                f"Cannot {action} {self.status} version {self.version!r} of {self.box.uri}"
            )

    # Friend primitives (called by owned providers)

    def _adopt(self, provider: Provider) -> None:
        self._providers = [p for p in self._providers if p.name != provider.name]
        self._providers.append(provider)

    def _forget(self, provider: Provider) -> None:
        self._providers = [p for p in self._providers if p is not provider]

    def _apply(self, payload: Payload) -> None:
        self.version = _text(payload, "version", self.version)
        if "status" in payload:
            try:
                self.status = VersionStatus(payload["status"])
            except ValueError as exc:
                raise CatalogResponseError(
                    f"Unknown version status: {payload['status']!r}"
                ) from exc
        number = payload.get("number", self.number)
        try:
            self.number = None if number is None else int(number)
        except (TypeError, ValueError) as exc:
            raise CatalogResponseError(f"Invalid version number: {number!r}") from exc
        self.description_markdown = _text(
            payload, "description_markdown", self.description_markdown
        )
        self.description_html = _text(payload, "description_html", self.description_html)
        self.downloads = int(payload.get("downloads") or self.downloads)
        self.release_url = _text(payload, "release_url", self.release_url)
        self.revoke_url = _text(payload, "revoke_url", self.revoke_url)
        self.created_at = _timestamp(payload, "created_at") or self.created_at
        self.updated_at = _timestamp(payload, "updated_at") or self.updated_at
        if "providers" in payload:
            self._providers = [
                Provider.from_payload(self, item) for item in _records(payload, "providers")
            ]


@dataclass(eq=False, kw_only=True)
class Provider:
    """A platform-specific artifact of a version.

    Either externally hosted (``original_url``) or hosted by the catalog, in which
    case the box file is uploaded and ``hosted_token`` identifies the upload.
    """

    version: Version = field(repr=False)
    name: ProviderName
    hosted: bool = False
    hosted_token: str = ""
    original_url: str = ""
    upload_url: str = ""
    download_url: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_payload(cls, version: Version, payload: Payload) -> Provider:
        try:
            name = ProviderName(payload.get("name"))
        except ValueError as exc:
            raise CatalogResponseError(f"Unknown provider: {payload.get('name')!r}") from exc
        provider = cls(version=version, name=name)
        provider._apply(payload)
        return provider

    @property
    def api(self) -> CatalogAPI:
        return self.version.api

    @property
    def box(self) -> Box:
        return self.version.box

    @property
    def uri(self) -> str:
        return f"{self.version.uri}/provider/{self.name}"

    @property
    def download_path(self) -> str:
        """Public download path, relative to the catalog host rather than the API root."""

        box = self.box
        return f"/{box.username}/{box.name}/version/{self.version.version}/provider/{self.name}.box"

    def fetch(self) -> None:
        self._apply(self.api.get(self.uri))

    def create(self) -> None:
        """Create the provider; omitting ``original_url`` makes it catalog-hosted."""

        fields = {"provider[name]": str(self.name)}
        if self.original_url:
            fields["provider[url]"] = self.original_url
        self._apply(self.api.post(f"{self.version.uri}/providers", fields))
        self.version._adopt(self)  # noqa: SLF001

    def update(self) -> None:
        self._apply(self.api.put(self.uri, {"provider[url]": self.original_url}))

    def delete(self) -> None:
        self.api.delete(self.uri)
        self.version._forget(self)  # noqa: SLF001

    def upload(self, data: BinaryIO) -> None:
        """Stream a ``.box`` file to the catalog.

        The upload succeeded when the returned token matches the ``hosted_token``
        reported by a subsequent ``fetch``.
        """

        self._apply(self.api.upload(f"{self.uri}/upload", data))

    def download(self, sink: BinaryIO) -> int:
        return self.api.download(self.download_path, sink)

    def _apply(self, payload: Payload) -> None:
        if "name" in payload:
            try:
                self.name = ProviderName(payload["name"])
            except ValueError as exc:
                raise CatalogResponseError(f"Unknown provider: {payload['name']!r}") from exc
        self.hosted = bool(payload.get("hosted", self.hosted))
        self.hosted_token = _text(payload, "hosted_token", self.hosted_token)
        self.original_url = _text(payload, "original_url", self.original_url)
        self.upload_url = _text(payload, "upload_url", self.upload_url)
        self.download_url = _text(payload, "download_url", self.download_url)
        self.created_at = _timestamp(payload, "created_at") or self.created_at
        self.updated_at = _timestamp(payload, "updated_at") or self.updated_at
