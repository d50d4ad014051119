"""Assembly of precache manifest entries from globs and templated URLs."""

from __future__ import annotations

import os
from typing import Any, Callable, Iterable, List, Mapping, Optional, Pattern, Sequence, Set, Union

from .discovery import FileDiscoverer
from .logging import get_logger
from .models import FileDetails, ManifestResult
from .templated import Discoverer, resolve_templated_urls
from .transforms import ManifestTransform, filter_files

Pipeline = Callable[..., ManifestResult]

_logger = get_logger("entries")


class EntryDeduplicator:
    """Keeps the first details record seen for each file path."""

    def __init__(self) -> None:
        self._seen: Set[str] = set()
        self._details: List[FileDetails] = []

    def add(self, details: FileDetails) -> bool:
        if details.file in self._seen:
            return False
        self._seen.add(details.file)
        self._details.append(details)
        return True

    def extend(self, details: Iterable[FileDetails]) -> None:
        for item in details:
            self.add(item)

    @property
    def details(self) -> List[FileDetails]:
        return list(self._details)

    def __contains__(self, file: object) -> bool:
        return file in self._seen

    def __len__(self) -> int:
        return len(self._details)


def derive_glob_ignores(glob_ignores: Sequence[str], sw_dest: str | os.PathLike[str] | None) -> List[str]:
    """Return a new ignore list that also excludes the service worker output file."""
    ignores = list(glob_ignores)
    if sw_dest:
        ignores.append(f"**/{os.path.basename(os.fspath(sw_dest))}")
    return ignores


def discover_file_details(
    *,
    glob_directory: str | os.PathLike[str] | None,
    glob_patterns: Sequence[str],
    glob_ignores: Sequence[str],
    discoverer: Discoverer,
    deduplicator: EntryDeduplicator | None = None,
) -> EntryDeduplicator:
    """Run the discoverer once per pattern, keeping the first match of each file."""
    deduplicator = deduplicator if deduplicator is not None else EntryDeduplicator()
    if not glob_directory:
        return deduplicator

    for glob_pattern in glob_patterns:
        matched = discoverer(
            glob_directory=glob_directory,
            glob_pattern=glob_pattern,
            glob_ignores=glob_ignores,
        )
        before = len(deduplicator)
        deduplicator.extend(matched)
        _logger.debug(
            "Pattern %s contributed %d of %d matched files",
            glob_pattern,
            len(deduplicator) - before,
            len(matched),
        )
    return deduplicator


def get_file_manifest_entries(
    *,
    glob_directory: str | os.PathLike[str] | None = None,
    glob_patterns: Sequence[str] = (),
    glob_ignores: Sequence[str] = (),
    templated_urls: Optional[Mapping[str, Any]] = None,
    sw_dest: str | os.PathLike[str] | None = None,
    maximum_file_size_to_cache_in_bytes: Optional[int] = None,
    modify_url_prefix: Optional[Mapping[str, str]] = None,
    dont_cache_bust_urls_matching: Union[str, Pattern[str], None] = None,
    manifest_transforms: Sequence[ManifestTransform] = (),
    discoverer: Optional[Discoverer] = None,
    pipeline: Pipeline = filter_files,
) -> ManifestResult:
    """Build the precache manifest.

    Glob-discovered files come first, in pattern order and then discovery
    order, followed by one entry per supported templated URL. The combined
    list goes through ``pipeline`` (``filter_files`` by default). Any error
    aborts the build; warnings are returned on the result.
    """
    discoverer = discoverer if discoverer is not None else FileDiscoverer()
    # A reused discoverer keeps earlier builds' warnings; report only this build's.
    warnings_before = len(getattr(discoverer, "warnings", None) or [])
    ignores = derive_glob_ignores(glob_ignores, sw_dest) if glob_directory else list(glob_ignores)

    deduplicator = discover_file_details(
        glob_directory=glob_directory,
        glob_patterns=glob_patterns,
        glob_ignores=ignores,
        discoverer=discoverer,
    )
    file_details = deduplicator.details

    if templated_urls:
        file_details.extend(
            resolve_templated_urls(
                templated_urls,
                deduplicator,
                glob_directory=glob_directory,
                glob_ignores=ignores,
                discoverer=discoverer,
            )
        )

    result = pipeline(
        file_details=file_details,
        maximum_file_size_to_cache_in_bytes=maximum_file_size_to_cache_in_bytes,
        modify_url_prefix=modify_url_prefix,
        dont_cache_bust_urls_matching=dont_cache_bust_urls_matching,
        manifest_transforms=manifest_transforms,
    )

    discovery_warnings = list(getattr(discoverer, "warnings", None) or [])[warnings_before:]
    if discovery_warnings:
        result.warnings = discovery_warnings + list(result.warnings)
    return result


__all__ = [
    "EntryDeduplicator",
    "derive_glob_ignores",
    "discover_file_details",
    "get_file_manifest_entries",
]
