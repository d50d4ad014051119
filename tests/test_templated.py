"""Tests for precache.templated."""

from __future__ import annotations

from typing import List

import pytest

from precache.errors import DependencyResolutionError, TemplatedUrlCollisionError
from precache.models import FileDetails
from precache.templated import (
    GlobListDependency,
    LiteralDependency,
    UnsupportedDependency,
    get_composite_details,
    get_string_details,
    parse_dependency,
    resolve_templated_urls,
)


def test_parse_dependency_variants() -> None:
    assert parse_dependency(["a.html", "b.html"]) == GlobListDependency(("a.html", "b.html"))
    assert parse_dependency(("a.html",)) == GlobListDependency(("a.html",))
    assert parse_dependency("v3") == LiteralDependency("v3")
    assert parse_dependency(None) == UnsupportedDependency(None)
    assert isinstance(parse_dependency({"a": 1}), UnsupportedDependency)


def test_string_details_keep_literal_revision() -> None:
    details = get_string_details("/shell", "build-2024-05-01")

    assert details == FileDetails(file="/shell", hash="build-2024-05-01", size=0)


def test_composite_details_sum_sizes_and_track_order() -> None:
    first = FileDetails(file="a.html", hash="aaa", size=3)
    second = FileDetails(file="b.html", hash="bbb", size=4)

    forward = get_composite_details("/page", [first, second])
    reverse = get_composite_details("/page", [second, first])

    assert forward.file == "/page"
    assert forward.size == 7
    assert forward.hash != reverse.hash
    assert forward == get_composite_details("/page", [first, second])


def test_composite_hash_reflects_dependency_sizes() -> None:
    small = FileDetails(file="a.html", hash="same", size=1)
    large = FileDetails(file="a.html", hash="same", size=2)

    assert get_composite_details("/", [small]).hash != get_composite_details("/", [large]).hash


def test_identical_dependencies_give_identical_revisions_in_any_order() -> None:
    first = FileDetails(file="a.html", hash="same", size=1)
    second = FileDetails(file="b.html", hash="same", size=1)

    assert (
        get_composite_details("/", [first, second]).hash
        == get_composite_details("/", [second, first]).hash
    )


def test_resolver_does_not_deduplicate_dependencies() -> None:
    calls: List[str] = []
    shared = FileDetails(file="shared.css", hash="css", size=2)

    def discoverer(*, glob_directory, glob_pattern, glob_ignores):
        calls.append(glob_pattern)
        return [shared]

    resolved = resolve_templated_urls(
        {"/a": ["*.css", "*.css"]},
        {"shared.css"},
        glob_directory="dist",
        glob_ignores=[],
        discoverer=discoverer,
    )

    assert calls == ["*.css", "*.css"]
    assert resolved == [get_composite_details("/a", [shared, shared])]


def test_resolver_checks_collision_before_resolving() -> None:
    def discoverer(**kwargs):  # pragma: no cover - must not be reached
        raise AssertionError("discoverer should not run for a colliding URL")

    with pytest.raises(TemplatedUrlCollisionError):
        resolve_templated_urls(
            {"index.html": ["*.html"]},
            {"index.html"},
            glob_directory="dist",
            glob_ignores=[],
            discoverer=discoverer,
        )


def test_resolver_wraps_any_discoverer_failure() -> None:
    def discoverer(*, glob_directory, glob_pattern, glob_ignores):
        raise PermissionError("denied")

    with pytest.raises(DependencyResolutionError) as excinfo:
        resolve_templated_urls(
            {"/app": ["private/*.html"]},
            set(),
            glob_directory="dist",
            glob_ignores=[],
            discoverer=discoverer,
        )

    assert excinfo.value.pattern == "private/*.html"
    assert isinstance(excinfo.value.__cause__, PermissionError)
    assert "private/*.html" in str(excinfo.value)


def test_literal_dependencies_never_touch_the_filesystem() -> None:
    def discoverer(**kwargs):  # pragma: no cover - must not be reached
        raise AssertionError("literal revisions must not be discovered")

    resolved = resolve_templated_urls(
        {"/shell": "v1", "/skip": 3},
        set(),
        glob_directory=None,
        glob_ignores=[],
        discoverer=discoverer,
    )

    assert resolved == [FileDetails(file="/shell", hash="v1", size=0)]
