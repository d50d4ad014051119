"""Deterministic precache manifest builder."""

from .entries import get_file_manifest_entries
from .errors import (
    ConfigError,
    DependencyResolutionError,
    GlobError,
    PrecacheError,
    TemplatedUrlCollisionError,
    TransformError,
)
from .manifest import get_manifest
from .models import FileDetails, ManifestEntry, ManifestResult

__all__ = [
    "ConfigError",
    "DependencyResolutionError",
    "FileDetails",
    "GlobError",
    "ManifestEntry",
    "ManifestResult",
    "PrecacheError",
    "TemplatedUrlCollisionError",
    "TransformError",
    "get_file_manifest_entries",
    "get_manifest",
]
