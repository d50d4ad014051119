"""Tests for precache.transforms."""

from __future__ import annotations

import re
from dataclasses import replace

import pytest

from precache import transforms
from precache.errors import ConfigError, TransformError
from precache.models import FileDetails, ManifestEntry
from precache.transforms import (
    TransformResult,
    filter_files,
    modify_url_prefix_transform,
    no_revision_for_urls_matching_transform,
    resolve_transforms,
)


def _files() -> list[FileDetails]:
    return [
        FileDetails(file="index.html", hash="h1", size=100),
        FileDetails(file="static\\app.3f2a9c1d.js", hash="h2", size=900),
        FileDetails(file="/shell", hash="v1", size=0),
    ]


def test_filter_files_normalizes_entries() -> None:
    result = filter_files(file_details=_files())

    assert [entry.to_dict() for entry in result.manifest_entries] == [
        {"url": "index.html", "revision": "h1"},
        {"url": "static/app.3f2a9c1d.js", "revision": "h2"},
        {"url": "/shell", "revision": "v1"},
    ]
    assert result.count == 3
    assert result.size == 1000
    assert result.warnings == []


def test_filter_files_applies_builtin_transforms_in_order() -> None:
    result = filter_files(
        file_details=_files(),
        maximum_file_size_to_cache_in_bytes=500,
        modify_url_prefix={"index": "/app/index", "/": "/app/"},
        dont_cache_bust_urls_matching=r"\.\w{8}\.",
    )

    assert [entry.to_dict() for entry in result.manifest_entries] == [
        {"url": "/app/index.html", "revision": "h1"},
        {"url": "/app/shell", "revision": "v1"},
    ]
    assert result.size == 100
    assert result.warnings == [
        "static/app.3f2a9c1d.js is 900 bytes, and won't be precached. "
        "Configure maximum_file_size_to_cache_in_bytes to change this limit."
    ]


def test_dont_cache_bust_clears_revision() -> None:
    result = filter_files(
        file_details=_files(),
        dont_cache_bust_urls_matching=re.compile(r"\.\w{8}\.js$"),
    )

    hashed = result.manifest_entries[1]
    assert hashed.revision is None
    assert hashed.to_dict() == {"url": "static/app.3f2a9c1d.js"}


def test_custom_transforms_run_after_builtins() -> None:
    seen: list[list[str]] = []

    def _record(entries):
        seen.append([entry.url for entry in entries])
        return TransformResult(manifest=entries, warnings=["recorded"])

    def _suffix(entries):
        return {"manifest": [replace(entry, url=entry.url + "?v") for entry in entries]}

    result = filter_files(
        file_details=_files(),
        modify_url_prefix={"/": "/root/"},
        manifest_transforms=[_record, _suffix],
    )

    assert seen == [["index.html", "static/app.3f2a9c1d.js", "/root/shell"]]
    assert [entry.url for entry in result.manifest_entries] == [
        "index.html?v",
        "static/app.3f2a9c1d.js?v",
        "/root/shell?v",
    ]
    assert result.warnings == ["recorded"]


@pytest.mark.parametrize(
    "bad_value",
    [
        None,
        [],
        {"entries": []},
        {"manifest": "nope"},
        {"manifest": ["index.html"]},
        {"manifest": [{"revision": "h1"}]},
        {"manifest": [{"url": "index.html", "revision": 7}]},
        TransformResult(manifest=[42]),  # type: ignore[list-item]
    ],
)
def test_invalid_transform_return_value_raises(bad_value) -> None:
    with pytest.raises(TransformError) as excinfo:
        filter_files(file_details=_files(), manifest_transforms=[lambda entries: bad_value])

    assert excinfo.value.code == "bad-manifest-transforms-return-value"


def test_modify_url_prefix_requires_string_mapping() -> None:
    with pytest.raises(TransformError) as excinfo:
        modify_url_prefix_transform({"/": 3})  # type: ignore[dict-item]

    assert excinfo.value.code == "modify-url-prefix-bad-prefixes"


def test_modify_url_prefix_only_replaces_leading_prefix() -> None:
    transform = modify_url_prefix_transform({"dist/": ""})
    entries = [ManifestEntry(url="dist/dist/app.js", revision="r", size=1)]

    result = transform(entries)

    assert [entry.url for entry in result.manifest] == ["dist/app.js"]


@pytest.mark.parametrize("pattern", ["([unclosed", 42])
def test_invalid_dont_cache_bust_pattern(pattern) -> None:
    with pytest.raises(TransformError) as excinfo:
        no_revision_for_urls_matching_transform(pattern)

    assert excinfo.value.code == "invalid-dont-cache-bust"


def test_resolve_transforms_imports_module_attribute() -> None:
    assert resolve_transforms(["builtins:list"]) == [list]


@pytest.mark.parametrize(
    "name",
    ["unknown-transform", "precache_missing_module_xyz:fn", "builtins:no_such_attribute", "builtins:__doc__"],
)
def test_resolve_transforms_rejects_bad_names(name: str) -> None:
    with pytest.raises(ConfigError):
        resolve_transforms([name])


def test_resolve_transforms_prefers_entry_points(monkeypatch) -> None:
    def _strip_revisions(entries):
        return TransformResult(manifest=[replace(entry, revision=None) for entry in entries])

    class FakeEntryPoint:
        name = "strip-revisions"

        def load(self):
            return _strip_revisions

    monkeypatch.setattr(transforms, "_iter_entry_points", lambda: [FakeEntryPoint()])

    assert resolve_transforms(["strip-revisions"]) == [_strip_revisions]


def test_transforms_may_return_plain_entry_mappings() -> None:
    def _as_dicts(entries):
        return {
            "manifest": [{"url": entry.url, "revision": entry.revision} for entry in entries],
            "warnings": ["converted"],
        }

    result = filter_files(file_details=_files()[:1], manifest_transforms=[_as_dicts])

    assert result.manifest_entries == [ManifestEntry(url="index.html", revision="h1", size=0)]
    assert result.size == 0
    assert result.warnings == ["converted"]
