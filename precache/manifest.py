"""Build a precache manifest from a loaded configuration."""

from __future__ import annotations

from typing import Optional

from .config import PrecacheConfig
from .entries import Pipeline, get_file_manifest_entries
from .logging import get_logger
from .models import ManifestResult
from .templated import Discoverer
from .transforms import filter_files, resolve_transforms


def get_manifest(
    config: PrecacheConfig,
    *,
    discoverer: Optional[Discoverer] = None,
    pipeline: Pipeline = filter_files,
) -> ManifestResult:
    """Resolve plugin transforms named in ``config`` and build the manifest."""
    logger = get_logger("manifest")
    transforms = resolve_transforms(config.manifest_transforms)
    logger.debug(
        "Building manifest from %s with %d patterns and %d templated URLs",
        config.glob_directory or "<no glob_directory>",
        len(config.glob_patterns),
        len(config.templated_urls),
    )

    result = get_file_manifest_entries(
        glob_directory=config.glob_directory,
        glob_patterns=config.glob_patterns,
        glob_ignores=config.glob_ignores,
        templated_urls=config.templated_urls,
        sw_dest=config.sw_dest,
        maximum_file_size_to_cache_in_bytes=config.maximum_file_size_to_cache_in_bytes,
        modify_url_prefix=config.modify_url_prefix or None,
        dont_cache_bust_urls_matching=config.dont_cache_bust_urls_matching,
        manifest_transforms=transforms,
        discoverer=discoverer,
        pipeline=pipeline,
    )

    logger.info(
        "Manifest lists %d URLs totalling %d bytes", result.count, result.size
    )
    for warning in result.warnings:
        logger.warning(warning)
    return result


__all__ = ["get_manifest"]
