"""Cleanup utilities for scratch artifacts."""

from __future__ import annotations

import logging
from typing import Optional

from .models import TempArtifact


def release(
    artifact: TempArtifact, logger: Optional[logging.Logger] = None
) -> bool:
    """Delete ``artifact`` from disk, reporting failures instead of raising.

    A file that is already gone counts as released.
    """

    log = logger or logging.getLogger(__name__)
    try:
        artifact.path.unlink(missing_ok=True)
    except OSError as exc:
        log.warning("Failed to delete scratch file %s: %s", artifact.path, exc)
        return False
    return True
