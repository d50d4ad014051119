"""Manifest transform pipeline: size limits, URL rewriting and custom hooks."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from importlib import import_module, metadata
from typing import Callable, Iterable, List, Mapping, Optional, Pattern, Sequence, Union

from .errors import ConfigError, TransformError
from .models import FileDetails, ManifestEntry, ManifestResult

_ENTRY_POINT_GROUP = "precache.manifest_transforms"


@dataclass
class TransformResult:
    """Value every manifest transform returns."""

    manifest: List[ManifestEntry]
    warnings: List[str] = field(default_factory=list)


ManifestTransform = Callable[[List[ManifestEntry]], Union[TransformResult, Mapping[str, object]]]


def maximum_size_transform(maximum_file_size_to_cache_in_bytes: int) -> ManifestTransform:
    """Drop entries larger than the limit, with a warning for each."""

    def _transform(entries: List[ManifestEntry]) -> TransformResult:
        warnings: List[str] = []
        kept: List[ManifestEntry] = []
        for entry in entries:
            if entry.size <= maximum_file_size_to_cache_in_bytes:
                kept.append(entry)
                continue
            warnings.append(
                f"{entry.url} is {entry.size} bytes, and won't be precached. "
                "Configure maximum_file_size_to_cache_in_bytes to change this limit."
            )
        return TransformResult(manifest=kept, warnings=warnings)

    return _transform


def modify_url_prefix_transform(modify_url_prefix: Mapping[str, str]) -> ManifestTransform:
    """Replace the first matching prefix of each URL."""
    if not isinstance(modify_url_prefix, Mapping) or not all(
        isinstance(key, str) and isinstance(value, str)
        for key, value in modify_url_prefix.items()
    ):
        raise TransformError(
            "modify_url_prefix must be a mapping of string prefixes to string replacements",
            code="modify-url-prefix-bad-prefixes",
        )
    if not modify_url_prefix:
        return lambda entries: TransformResult(manifest=list(entries))

    prefix_pattern = re.compile(
        "^(" + "|".join(re.escape(prefix) for prefix in modify_url_prefix) + ")"
    )

    def _replace(match: "re.Match[str]") -> str:
        return modify_url_prefix[match.group(1)]

    def _transform(entries: List[ManifestEntry]) -> TransformResult:
        rewritten = [
            replace(entry, url=prefix_pattern.sub(_replace, entry.url, count=1))
            for entry in entries
        ]
        return TransformResult(manifest=rewritten)

    return _transform


def no_revision_for_urls_matching_transform(
    dont_cache_bust_urls_matching: Union[str, Pattern[str]],
) -> ManifestTransform:
    """Clear the revision of URLs that already embed one (e.g. hashed filenames)."""
    if isinstance(dont_cache_bust_urls_matching, str):
        try:
            regexp = re.compile(dont_cache_bust_urls_matching)
        except re.error as exc:
            raise TransformError(
                f"dont_cache_bust_urls_matching is not a valid regular expression: {exc}",
                code="invalid-dont-cache-bust",
            ) from exc
    elif isinstance(dont_cache_bust_urls_matching, re.Pattern):
        regexp = dont_cache_bust_urls_matching
    else:
        raise TransformError(
            "dont_cache_bust_urls_matching must be a regular expression",
            code="invalid-dont-cache-bust",
        )

    def _transform(entries: List[ManifestEntry]) -> TransformResult:
        manifest = [
            replace(entry, revision=None) if regexp.search(entry.url) else entry
            for entry in entries
        ]
        return TransformResult(manifest=manifest)

    return _transform


def _bad_return_value() -> TransformError:
    return TransformError(
        "A manifest transform must return a TransformResult or a mapping with a 'manifest' "
        "list of ManifestEntry objects or {url, revision} mappings",
        code="bad-manifest-transforms-return-value",
    )


def _coerce_entry(item: object) -> ManifestEntry:
    if isinstance(item, ManifestEntry):
        return item
    if isinstance(item, Mapping):
        url = item.get("url")
        revision = item.get("revision")
        size = item.get("size", 0)
        if (
            isinstance(url, str)
            and (revision is None or isinstance(revision, str))
            and isinstance(size, int)
            and not isinstance(size, bool)
        ):
            return ManifestEntry(url=url, revision=revision, size=size)
    raise _bad_return_value()


def _coerce_result(result: object) -> TransformResult:
    if isinstance(result, TransformResult):
        manifest, warnings = result.manifest, result.warnings
    elif isinstance(result, Mapping) and "manifest" in result:
        manifest, warnings = result["manifest"], result.get("warnings") or []
    else:
        raise _bad_return_value()
    if not isinstance(manifest, list) or not isinstance(warnings, (list, tuple)):
        raise _bad_return_value()
    return TransformResult(
        manifest=[_coerce_entry(item) for item in manifest],
        warnings=[str(item) for item in warnings],
    )


def filter_files(
    *,
    file_details: Sequence[FileDetails],
    maximum_file_size_to_cache_in_bytes: Optional[int] = None,
    modify_url_prefix: Optional[Mapping[str, str]] = None,
    dont_cache_bust_urls_matching: Union[str, Pattern[str], None] = None,
    manifest_transforms: Sequence[ManifestTransform] = (),
) -> ManifestResult:
    """Turn raw file details into the final manifest.

    Built-in transforms run first (size limit, URL prefix rewrite, cache-bust
    exemption), followed by ``manifest_transforms`` in order. A falsy
    ``maximum_file_size_to_cache_in_bytes`` (``None`` or ``0``) means no limit.
    """
    manifest = [
        ManifestEntry(url=details.file.replace("\\", "/"), revision=details.hash, size=details.size)
        for details in file_details
    ]

    chain: List[ManifestTransform] = []
    if maximum_file_size_to_cache_in_bytes:
        chain.append(maximum_size_transform(maximum_file_size_to_cache_in_bytes))
    if modify_url_prefix:
        chain.append(modify_url_prefix_transform(modify_url_prefix))
    if dont_cache_bust_urls_matching:
        chain.append(no_revision_for_urls_matching_transform(dont_cache_bust_urls_matching))
    chain.extend(manifest_transforms or ())

    warnings: List[str] = []
    for transform in chain:
        result = _coerce_result(transform(list(manifest)))
        manifest = result.manifest
        warnings.extend(result.warnings)

    total_size = sum(entry.size or 0 for entry in manifest)
    return ManifestResult(manifest_entries=manifest, warnings=warnings, size=total_size)


def resolve_transforms(names: Iterable[str]) -> List[ManifestTransform]:
    """Load transforms by entry point name or ``module:attribute`` path."""
    registered = {entry.name: entry for entry in _iter_entry_points()}
    transforms: List[ManifestTransform] = []
    for name in names:
        if name in registered:
            try:
                loaded = registered[name].load()
            except Exception as exc:
                raise ConfigError(f"Failed to load manifest transform '{name}': {exc}") from exc
        elif ":" in name:
            loaded = _import_attribute(name)
        else:
            raise ConfigError(f"Unknown manifest transform requested: {name}")
        if not callable(loaded):
            raise ConfigError(f"Manifest transform '{name}' is not callable")
        transforms.append(loaded)
    return transforms


def _import_attribute(path: str) -> object:
    module_name, _, attribute = path.partition(":")
    try:
        module = import_module(module_name)
    except ImportError as exc:
        raise ConfigError(f"Cannot import manifest transform module '{module_name}': {exc}") from exc
    try:
        return getattr(module, attribute)
    except AttributeError as exc:
        raise ConfigError(f"Module '{module_name}' has no attribute '{attribute}'") from exc


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "ManifestTransform",
    "TransformResult",
    "filter_files",
    "maximum_size_transform",
    "modify_url_prefix_transform",
    "no_revision_for_urls_matching_transform",
    "resolve_transforms",
]
