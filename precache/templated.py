"""Templated URL resolution: composite and literal-revision manifest entries."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from typing import Any, Callable, Container, List, Mapping, Sequence, Tuple, Union

from .errors import DependencyResolutionError, TemplatedUrlCollisionError
from .logging import get_logger
from .models import FileDetails

Discoverer = Callable[..., Sequence[FileDetails]]

_logger = get_logger("templated")


@dataclass(frozen=True)
class GlobListDependency:
    """The URL's revision is derived from every file these patterns match."""

    patterns: Tuple[str, ...]


@dataclass(frozen=True)
class LiteralDependency:
    """The URL's revision is the given string, used as-is."""

    value: str


@dataclass(frozen=True)
class UnsupportedDependency:
    """Any other value; such URLs contribute no manifest entry."""

    raw: Any


Dependency = Union[GlobListDependency, LiteralDependency, UnsupportedDependency]


def parse_dependency(raw: Any) -> Dependency:
    """Classify a raw ``templated_urls`` value."""
    if isinstance(raw, str):
        return LiteralDependency(raw)
    if isinstance(raw, (list, tuple)):
        return GlobListDependency(tuple(raw))
    return UnsupportedDependency(raw)


def get_composite_details(composite_url: str, dependency_details: Sequence[FileDetails]) -> FileDetails:
    """Combine dependency files into one entry whose hash tracks all of them.

    The hash covers each dependency's ``hash:size`` pair in order, so the
    same files listed in a different order give a different revision.
    """
    digest = hashlib.md5()
    total_size = 0
    for details in dependency_details:
        digest.update(f"{details.hash}:{details.size};".encode("utf-8"))
        total_size += details.size
    return FileDetails(file=composite_url, hash=digest.hexdigest(), size=total_size)


def get_string_details(url: str, revision: str) -> FileDetails:
    return FileDetails(file=url, hash=revision, size=0)


def _resolve_glob_list(
    url: str,
    dependency: GlobListDependency,
    *,
    glob_directory: str | os.PathLike[str] | None,
    glob_ignores: Sequence[str],
    discoverer: Discoverer,
) -> FileDetails:
    details: List[FileDetails] = []
    for pattern in dependency.patterns:
        try:
            matched = discoverer(
                glob_directory=glob_directory,
                glob_pattern=pattern,
                glob_ignores=glob_ignores,
            )
        except Exception as exc:
            raise DependencyResolutionError(url, pattern, dependency.patterns) from exc
        details.extend(matched)
    return get_composite_details(url, details)


def resolve_templated_urls(
    templated_urls: Mapping[str, Any],
    claimed: Container[str],
    *,
    glob_directory: str | os.PathLike[str] | None,
    glob_ignores: Sequence[str],
    discoverer: Discoverer,
) -> List[FileDetails]:
    """Return one details record per supported templated URL, in mapping order.

    ``claimed`` holds the file paths already produced by glob discovery; a
    templated URL equal to one of them raises ``TemplatedUrlCollisionError``.
    Dependency files are not deduplicated against ``claimed``.
    """
    resolved: List[FileDetails] = []
    for url, raw_dependency in templated_urls.items():
        if url in claimed:
            raise TemplatedUrlCollisionError(url)

        dependency = parse_dependency(raw_dependency)
        if isinstance(dependency, GlobListDependency):
            resolved.append(
                _resolve_glob_list(
                    url,
                    dependency,
                    glob_directory=glob_directory,
                    glob_ignores=glob_ignores,
                    discoverer=discoverer,
                )
            )
        elif isinstance(dependency, LiteralDependency):
            resolved.append(get_string_details(url, dependency.value))
        else:
            _logger.debug(
                "Skipping templated URL %s: unsupported dependency type %s",
                url,
                type(dependency.raw).__name__,
            )
    return resolved


__all__ = [
    "Dependency",
    "GlobListDependency",
    "LiteralDependency",
    "UnsupportedDependency",
    "get_composite_details",
    "get_string_details",
    "parse_dependency",
    "resolve_templated_urls",
]
