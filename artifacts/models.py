"""Shared dataclasses for scratch artifacts."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class TempArtifact:
    """A scratch HTML file owned by a single conversion."""

    path: Path
    owning_directory: Path

    @property
    def uri(self) -> str:
        """Return the ``file://`` URI handed to the renderer."""

        return self.path.resolve().as_uri()

    def write(self, markup: str) -> None:
        self.path.write_text(markup, encoding="utf-8")
