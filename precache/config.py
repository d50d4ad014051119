"""Configuration loading for precache (.precache.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".precache.yml"

DEFAULT_GLOB_PATTERNS = ("**/*.{js,css,html}",)
DEFAULT_GLOB_IGNORES = ("node_modules/**/*",)
DEFAULT_MAXIMUM_FILE_SIZE = 2 * 1024 * 1024


@dataclass
class PrecacheConfig:
    """Settings for one manifest build, as read from .precache.yml.

    ``maximum_file_size_to_cache_in_bytes`` of ``None`` disables the size limit.
    """

    root: Path
    glob_directory: Optional[Path] = None
    glob_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_GLOB_PATTERNS))
    glob_ignores: List[str] = field(default_factory=lambda: list(DEFAULT_GLOB_IGNORES))
    templated_urls: Dict[str, Any] = field(default_factory=dict)
    sw_dest: Optional[Path] = None
    maximum_file_size_to_cache_in_bytes: Optional[int] = DEFAULT_MAXIMUM_FILE_SIZE
    modify_url_prefix: Dict[str, str] = field(default_factory=dict)
    dont_cache_bust_urls_matching: Optional[str] = None
    manifest_transforms: List[str] = field(default_factory=list)


def load_config(config_path: Path) -> PrecacheConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return PrecacheConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = PrecacheConfig(root=root)

    glob_directory = _as_str(data.get("glob_directory"))
    if glob_directory:
        config.glob_directory = root / glob_directory
    if "glob_patterns" in data:
        config.glob_patterns = _as_str_list(data.get("glob_patterns"))
    if "glob_ignores" in data:
        config.glob_ignores = _as_str_list(data.get("glob_ignores"))

    sw_dest = _as_str(data.get("sw_dest"))
    if sw_dest:
        config.sw_dest = root / sw_dest

    if "maximum_file_size_to_cache_in_bytes" in data:
        raw_limit = data.get("maximum_file_size_to_cache_in_bytes")
        limit = _as_int(raw_limit)
        if raw_limit is not None and (limit is None or limit < 1):
            raise ConfigError(
                "maximum_file_size_to_cache_in_bytes must be a positive integer, or null for no limit"
            )
        config.maximum_file_size_to_cache_in_bytes = limit

    templated_urls = data.get("templated_urls")
    if templated_urls is not None:
        if not isinstance(templated_urls, dict):
            raise ConfigError("templated_urls must map URLs to a list of globs or a revision string")
        config.templated_urls = {str(url): value for url, value in templated_urls.items()}

    modify_url_prefix = data.get("modify_url_prefix")
    if modify_url_prefix is not None:
        if not isinstance(modify_url_prefix, dict):
            raise ConfigError("modify_url_prefix must map old prefixes to new prefixes")
        config.modify_url_prefix = {
            str(old): "" if new is None else str(new) for old, new in modify_url_prefix.items()
        }

    config.dont_cache_bust_urls_matching = _as_str(data.get("dont_cache_bust_urls_matching"))
    config.manifest_transforms = _as_str_list(data.get("manifest_transforms"))

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = ["CONFIG_FILENAME", "PrecacheConfig", "load_config"]
