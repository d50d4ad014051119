"""Glob evaluation and per-file hashing for precache manifests."""

from __future__ import annotations

import hashlib
import json
import os
import re
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple

from pathspec import PathSpec

from .errors import GlobError
from .logging import get_logger
from .models import FileDetails

_CHUNK_SIZE = 1024 * 1024

# Ignore patterns with one of these suffixes exclude whole directory trees,
# which lets the walk skip them instead of hashing their contents.
_TREE_SUFFIXES = ("/**/*", "/**")


def expand_braces(pattern: str) -> List[str]:
    """Expand ``{a,b}`` alternations (nesting allowed) into plain glob patterns."""
    start = pattern.find("{")
    if start == -1:
        if "}" in pattern:
            raise GlobError(f"Unbalanced '}}' in glob pattern '{pattern}'", pattern=pattern)
        return [pattern]

    depth = 0
    options: List[str] = []
    option_start = start + 1
    for index in range(start, len(pattern)):
        char = pattern[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                options.append(pattern[option_start:index])
                prefix, suffix = pattern[:start], pattern[index + 1 :]
                expanded: List[str] = []
                for option in options:
                    for candidate in expand_braces(prefix + option + suffix):
                        if candidate not in expanded:
                            expanded.append(candidate)
                return expanded
        elif char == "," and depth == 1:
            options.append(pattern[option_start:index])
            option_start = index + 1

    raise GlobError(f"Unbalanced '{{' in glob pattern '{pattern}'", pattern=pattern)


def _has_hidden_segment(path: str) -> bool:
    return any(part.startswith(".") for part in path.split("/"))


class GlobMatcher:
    """Matches relative POSIX paths against one brace-expanded glob pattern.

    Each alternative is anchored at the glob directory and evaluated with
    gitwildmatch rules. Unless ``dot`` is set, an alternative only matches a
    path with a ``.``-prefixed segment when it spells such a segment itself.
    """

    def __init__(self, pattern: str, candidates: Sequence[str], *, dot: bool) -> None:
        self.pattern = pattern
        self._specs: List[Tuple[PathSpec, bool]] = []
        for candidate in candidates:
            try:
                spec = PathSpec.from_lines("gitwildmatch", [f"/{candidate}"])
            except ValueError as exc:
                raise GlobError(f"Invalid glob pattern '{pattern}': {exc}", pattern=pattern) from exc
            self._specs.append((spec, dot or _has_hidden_segment(candidate)))

    def matches(self, rel_path: str) -> bool:
        hidden = _has_hidden_segment(rel_path)
        return any(
            spec.match_file(rel_path)
            for spec, allows_hidden in self._specs
            if allows_hidden or not hidden
        )


def compile_glob(pattern: str, *, dot: bool = False) -> GlobMatcher:
    """Build a matcher for ``pattern`` relative to the glob directory.

    ``**`` spans any number of directories and ``{a,b}`` expands to
    alternatives before matching.
    """
    if not isinstance(pattern, str) or not pattern.strip():
        raise GlobError("Glob patterns must be non-empty strings", pattern=str(pattern))
    normalized = pattern.replace("\\", "/")
    if normalized.startswith("/") or re.match(r"^[A-Za-z]:/", normalized):
        raise GlobError(
            f"Glob pattern '{pattern}' must be relative to glob_directory",
            pattern=pattern,
        )
    while normalized.startswith("./"):
        normalized = normalized[2:]

    return GlobMatcher(pattern, expand_braces(normalized), dot=dot)


def hash_file(path: Path) -> str:
    """Return the md5 hex digest of a file's contents."""
    digest = hashlib.md5()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _resolve_root(glob_directory: str | os.PathLike[str] | None) -> Path:
    if glob_directory is None:
        raise GlobError("A glob_directory is required to evaluate glob patterns")
    root = Path(glob_directory).expanduser()
    if not root.exists():
        raise GlobError(f"glob_directory not found: {glob_directory}")
    if not root.is_dir():
        raise GlobError(f"glob_directory is not a directory: {glob_directory}")
    return root


def _tree_matchers(glob_ignores: Sequence[str]) -> List[GlobMatcher]:
    matchers: List[GlobMatcher] = []
    for pattern in glob_ignores:
        for suffix in _TREE_SUFFIXES:
            if pattern.endswith(suffix) and len(pattern) > len(suffix):
                matchers.append(compile_glob(pattern[: -len(suffix)], dot=True))
                break
    return matchers


def _raise_walk_error(error: OSError) -> None:
    raise GlobError(f"Unable to read {error.filename}: {error.strerror}") from error


def _iter_relative_files(root: Path, pruned: Sequence[GlobMatcher]) -> Iterator[str]:
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept = []
        for name in sorted(dirnames):
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if any(matcher.matches(rel_path) for matcher in pruned):
                continue
            kept.append(name)
        dirnames[:] = kept

        for filename in filenames:
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if (current_dir / filename).is_file():
                yield rel_path


class FileDiscoverer:
    """Evaluates one glob pattern at a time and returns hashed file details.

    Instances are callable so they can be passed anywhere a discoverer is
    expected. Patterns that match nothing are recorded in ``warnings``.
    """

    def __init__(self) -> None:
        self.warnings: List[str] = []
        self.logger = get_logger("discovery")

    def __call__(
        self,
        *,
        glob_directory: str | os.PathLike[str] | None,
        glob_pattern: str,
        glob_ignores: Sequence[str] = (),
    ) -> List[FileDetails]:
        root = _resolve_root(glob_directory)
        matcher = compile_glob(glob_pattern)
        ignore_matchers = [compile_glob(pattern, dot=True) for pattern in glob_ignores]
        pruned = _tree_matchers(glob_ignores)

        details: List[FileDetails] = []
        for rel_path in _iter_relative_files(root, pruned):
            if not matcher.matches(rel_path):
                continue
            if any(ignore.matches(rel_path) for ignore in ignore_matchers):
                continue
            path = root / rel_path
            details.append(
                FileDetails(file=rel_path, hash=hash_file(path), size=path.stat().st_size)
            )
        details.sort(key=lambda item: item.file)

        self.logger.debug("Pattern %s matched %d files", glob_pattern, len(details))
        if not details:
            debug_info = {
                "glob_directory": str(glob_directory),
                "glob_pattern": glob_pattern,
                "glob_ignores": list(glob_ignores),
            }
            self.warnings.append(
                "One of the glob patterns doesn't match any files. "
                f"Please remove or fix the following: {json.dumps(debug_info, indent=2)}"
            )
        return details


__all__ = ["FileDiscoverer", "compile_glob", "expand_braces", "hash_file"]
