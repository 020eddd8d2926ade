"""Value objects describing the external release tree."""

from __future__ import annotations

from dataclasses import dataclass


def _capitalize_words(text: str) -> str:
    # unlike str.title(), keeps the rest of each word as-is ("LTS" stays "LTS")
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" "))


DEFAULT_TITLE_PREFIX = "Official Ubuntu Server"


@dataclass(frozen=True, slots=True)
class Architecture:
    """One catalog box variant of a release.

    ``suffix`` is appended to the release name to form the box name, ``label`` is
    used in descriptions and ``file_suffix`` completes the artifact file name.
    """

    suffix: str
    label: str
    file_suffix: str


DEFAULT_ARCHITECTURES: tuple[Architecture, ...] = (
    Architecture("64", "amd64", "-server-cloudimg-amd64-vagrant-disk1.box"),
    Architecture("32", "i386", "-server-cloudimg-i386-vagrant-disk1.box"),
)


@dataclass(frozen=True, slots=True)
class Release:
    """An upstream release line, i.e. one directory of the source tree."""

    name: str
    root_url: str
    display_name: str | None = None
    title_prefix: str = DEFAULT_TITLE_PREFIX

    @property
    def url(self) -> str:
        return f"{self.root_url}{self.name}/"

    def box_name(self, architecture: Architecture) -> str:
        return self.name + architecture.suffix

    def artifact_url(self, version: str, architecture: Architecture) -> str:
        return f"{self.url}{version}/{self.name}{architecture.file_suffix}"

    def title(self, label: str = "", latest: str = "") -> str:
        """Box short description, e.g. ``Official Ubuntu Server Xenial amd64 builds``."""

        parts = [self.title_prefix, _capitalize_words(self.display_name or self.name)]
        if label:
            parts.append(label)
        parts.append("builds")
        title = " ".join(parts)
        if latest:
            title += f" (latest {latest})"
        return title
