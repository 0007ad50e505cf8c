"""Scratch file helpers for intermediate HTML written during conversion."""

from .cleanup import release
from .models import TempArtifact
from .scratch import SCRATCH_DIR_NAME, acquire, scratch_directory, scratch_file

__all__ = [
    "SCRATCH_DIR_NAME",
    "TempArtifact",
    "acquire",
    "release",
    "scratch_directory",
    "scratch_file",
]
