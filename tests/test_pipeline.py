"""Tests for ctxcache.pipeline — building caches from a sources directory."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from ctxcache.cache import load_cache
from ctxcache.config import CtxcacheConfig
from ctxcache.exceptions import (
    CacheIOError,
    IngestError,
    OutputAlreadyExistsError,
    SourcesNotFoundError,
)
from ctxcache.manifest import MANIFEST_FILE
from ctxcache.pipeline import BuildPipeline, remove_cache
from ctxcache.select import select
from ctxcache.types import DocumentId

if TYPE_CHECKING:
    from pathlib import Path


class TestCollect:
    def test_collects_fixture_docs(self, sources_dir: Path):
        documents = BuildPipeline().collect(sources_dir)
        assert [d.source for d in documents] == [
            "docs/api.md",
            "docs/architecture.md",
            "docs/deployment.md",
            "docs/quickstart.md",
        ]

    def test_ids_from_logical_path(self, sources_dir: Path):
        documents = BuildPipeline().collect(sources_dir)
        for doc in documents:
            assert doc.id == DocumentId.from_logical_path(doc.source)
            assert doc.metadata == ()

    def test_ids_independent_of_location(self, sources_dir: Path, tmp_path: Path):
        moved = tmp_path / "elsewhere" / "sources"
        moved.parent.mkdir()
        sources_dir.rename(moved)
        ids = [d.id for d in BuildPipeline().collect(moved)]
        assert ids[0] == DocumentId.from_logical_path("docs/api.md")

    def test_respects_configured_extensions(self, sources_dir: Path):
        (sources_dir / "notes.txt").write_text("plain notes", encoding="utf-8")
        config = CtxcacheConfig()
        config.sources.extensions = [".txt"]
        documents = BuildPipeline(config).collect(sources_dir)
        assert [d.source for d in documents] == ["notes.txt"]

    def test_invalid_utf8_source(self, sources_dir: Path):
        (sources_dir / "bad.md").write_bytes(b"\xff\xfe")
        with pytest.raises(IngestError, match="bad.md"):
            BuildPipeline().collect(sources_dir)

    def test_missing_sources(self, tmp_path: Path):
        with pytest.raises(SourcesNotFoundError):
            BuildPipeline().collect(tmp_path / "missing")


class TestRun:
    def test_builds_cache(self, sources_dir: Path, tmp_path: Path):
        target = tmp_path / "cache"
        manifest = BuildPipeline().run(sources_dir, target)
        assert manifest.document_count == 4
        assert (target / MANIFEST_FILE).is_file()
        assert load_cache(target).manifest == manifest

    def test_configured_version(self, sources_dir: Path, tmp_path: Path):
        config = CtxcacheConfig()
        config.build.cache_version = "v1.2"
        manifest = BuildPipeline(config).run(sources_dir, tmp_path / "cache")
        assert manifest.cache_version == "v1.2"

    def test_existing_target_without_force(self, sources_dir: Path, tmp_path: Path):
        target = tmp_path / "cache"
        BuildPipeline().run(sources_dir, target)
        with pytest.raises(OutputAlreadyExistsError):
            BuildPipeline().run(sources_dir, target)

    def test_force_rebuild(self, sources_dir: Path, tmp_path: Path):
        target = tmp_path / "cache"
        BuildPipeline().run(sources_dir, target)
        (target / "stray.txt").write_text("leftover", encoding="utf-8")
        manifest = BuildPipeline().run(sources_dir, target, force=True)
        assert manifest.document_count == 4
        assert not (target / "stray.txt").exists()

    def test_force_without_existing_target(self, sources_dir: Path, tmp_path: Path):
        manifest = BuildPipeline().run(sources_dir, tmp_path / "cache", force=True)
        assert manifest.document_count == 4

    def test_force_keeps_target_when_sources_missing(self, sources_dir: Path, tmp_path: Path):
        target = tmp_path / "cache"
        BuildPipeline().run(sources_dir, target)
        with pytest.raises(SourcesNotFoundError):
            BuildPipeline().run(tmp_path / "missing", target, force=True)
        assert (target / MANIFEST_FILE).is_file()


class TestRebuildStability:
    def test_two_builds_identical(self, sources_dir: Path, tmp_path: Path):
        one = tmp_path / "one"
        two = tmp_path / "two"
        BuildPipeline().run(sources_dir, one)
        BuildPipeline().run(sources_dir, two)
        assert (one / MANIFEST_FILE).read_bytes() == (two / MANIFEST_FILE).read_bytes()
        for path in one.iterdir():
            assert (two / path.name).read_bytes() == path.read_bytes()

    def test_selection_identical_across_rebuilds(self, sources_dir: Path, tmp_path: Path):
        BuildPipeline().run(sources_dir, tmp_path / "one")
        BuildPipeline().run(sources_dir, tmp_path / "two")
        a = select(load_cache(tmp_path / "one"), "deployment", 4096)
        b = select(load_cache(tmp_path / "two"), "deployment", 4096)
        assert json.dumps(a.to_dict()) == json.dumps(b.to_dict())


class TestRemoveCache:
    def test_removes_directory(self, tmp_path: Path):
        target = tmp_path / "cache"
        (target / "sub").mkdir(parents=True)
        (target / "sub" / "f.txt").write_text("x", encoding="utf-8")
        remove_cache(target)
        assert not target.exists()

    def test_removes_file(self, tmp_path: Path):
        target = tmp_path / "cache"
        target.write_text("x", encoding="utf-8")
        remove_cache(target)
        assert not target.exists()

    def test_missing_raises(self, tmp_path: Path):
        with pytest.raises(CacheIOError, match="Failed to remove"):
            remove_cache(tmp_path / "missing")
