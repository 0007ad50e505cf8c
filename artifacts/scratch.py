"""Scratch directory and per-conversion HTML file management."""

from __future__ import annotations

import logging
import tempfile
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from .cleanup import release
from .models import TempArtifact

SCRATCH_DIR_NAME = "html-to-pdf"

PathLike = Union[str, Path]


def scratch_directory(base_dir: Optional[PathLike] = None) -> Path:
    """Return the scratch directory, creating it when missing."""

    root = Path(base_dir) if base_dir else Path(tempfile.gettempdir())
    path = root / SCRATCH_DIR_NAME
    path.mkdir(parents=True, exist_ok=True)
    return path


def acquire(base_dir: Optional[PathLike] = None) -> TempArtifact:
    """Reserve a uniquely named HTML file inside the scratch directory."""

    directory = scratch_directory(base_dir)
    return TempArtifact(
        path=directory / f"{uuid.uuid4().hex}.html",
        owning_directory=directory,
    )


@contextmanager
def scratch_file(
    markup: str,
    *,
    base_dir: Optional[PathLike] = None,
    logger: Optional[logging.Logger] = None,
) -> Iterator[TempArtifact]:
    """Write ``markup`` to a scratch file and delete it on exit."""

    artifact = acquire(base_dir)
    try:
        artifact.write(markup)
        yield artifact
    finally:
        release(artifact, logger)
