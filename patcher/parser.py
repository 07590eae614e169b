"""Contract shared by the manifest parsers."""

from pathlib import Path
from typing import Protocol

from .errors import ManifestReadError, ManifestWriteError
from .models import Ecosystem, PackageInfo


def read_manifest(path: str) -> str:
    """Read a manifest file as text, wrapping I/O failures."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestReadError(f"failed to read file {path}: {e}") from e


class Parser(Protocol):
    """Ecosystem-specific dependency file parser.

    Implementations read a manifest into a normalized package list, produce
    updated file content for a ``{name: new_version}`` mapping, and check that
    content is still syntactically valid before it is written.
    """

    @property
    def ecosystem(self) -> Ecosystem: ...

    @property
    def file_patterns(self) -> list[str]: ...

    def can_handle(self, filename: str) -> bool: ...

    def parse(self, path: str) -> list[PackageInfo]: ...

    def update(self, path: str, updates: dict[str, str]) -> str: ...

    def validate(self, content: str) -> bool: ...


def write_manifest(path: str, content: str) -> None:
    """Write updated manifest content, wrapping I/O failures."""
    try:
        Path(path).write_text(content, encoding="utf-8")
    except OSError as e:
        raise ManifestWriteError(f"failed to write {path}: {e}") from e
