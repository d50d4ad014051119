"""Exception hierarchy raised while building precache manifests."""

from __future__ import annotations

import json
from typing import Dict, List, Sequence


class PrecacheError(RuntimeError):
    """Base class for every fatal manifest build failure."""

    code = "precache-error"


class ConfigError(PrecacheError):
    """Raised when the configuration file or its values are invalid."""

    code = "invalid-config"


class GlobError(PrecacheError):
    """Raised when a glob pattern cannot be evaluated against a directory."""

    code = "unable-to-glob-files"

    def __init__(self, message: str, *, pattern: str | None = None) -> None:
        super().__init__(message)
        self.pattern = pattern


class TransformError(PrecacheError):
    """Raised when a manifest transform is misconfigured or misbehaves."""

    def __init__(self, message: str, *, code: str) -> None:
        super().__init__(message)
        self.code = code


class TemplatedUrlCollisionError(PrecacheError):
    """A templated URL is also a file path claimed by glob discovery."""

    code = "templated-url-matches-glob"

    def __init__(self, url: str) -> None:
        super().__init__(
            f"The templated URL '{url}' is also matched by glob_patterns. "
            "Remove it from one of them so its revision has a single owner."
        )
        self.url = url


class DependencyResolutionError(PrecacheError):
    """A glob pattern listed as a templated URL dependency failed to resolve.

    The original exception is available as ``__cause__``.
    """

    code = "bad-template-urls-asset"

    def __init__(self, url: str, pattern: str, dependencies: Sequence[str]) -> None:
        self.url = url
        self.pattern = pattern
        self.dependencies: Dict[str, List[str]] = {url: list(dependencies)}
        super().__init__(
            f"Unable to resolve the templated URL dependency '{pattern}' "
            f"from {json.dumps(self.dependencies)}"
        )


__all__ = [
    "ConfigError",
    "DependencyResolutionError",
    "GlobError",
    "PrecacheError",
    "TemplatedUrlCollisionError",
    "TransformError",
]
