"""Tests for ctxcache.cli module."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from typer.testing import CliRunner

from ctxcache import __version__
from ctxcache.cli import app
from ctxcache.config import CONFIG_FILE, CtxcacheConfig, load_config, save_config
from ctxcache.manifest import MANIFEST_FILE

if TYPE_CHECKING:
    from pathlib import Path

    import pytest

runner = CliRunner()


def _build(sources: Path, cache: Path, *extra: str):
    return runner.invoke(app, ["build", "--sources", str(sources), "--cache", str(cache), *extra])


def _resolve(cache: Path, query: str, budget: int | str, *extra: str):
    return runner.invoke(
        app,
        ["resolve", "--cache", str(cache), "--query", query, "--budget", str(budget), *extra],
    )


class TestVersion:
    def test_prints_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestInit:
    def test_writes_default_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert load_config(tmp_path / CONFIG_FILE).resolve.scorer == "keyword"
        assert "Wrote default config" in result.output

    def test_custom_path(self, tmp_path: Path):
        path = tmp_path / "conf" / "ctx.toml"
        result = runner.invoke(app, ["init", "--path", str(path)])
        assert result.exit_code == 0
        assert path.is_file()

    def test_refuses_overwrite(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text("[build]\n", encoding="utf-8")
        result = runner.invoke(app, ["init", "--path", str(path)])
        assert result.exit_code == 1
        assert "already exists" in result.output
        assert path.read_text(encoding="utf-8") == "[build]\n"

    def test_force_overwrites(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text("[build]\n", encoding="utf-8")
        result = runner.invoke(app, ["init", "--path", str(path), "--force"])
        assert result.exit_code == 0
        assert "[resolve]" in path.read_text(encoding="utf-8")


class TestBuild:
    def test_build_succeeds(self, sources_dir: Path, tmp_path: Path):
        cache = tmp_path / "cache"
        result = _build(sources_dir, cache)
        assert result.exit_code == 0
        assert (cache / MANIFEST_FILE).is_file()
        assert "Built cache: 4 documents" in result.output

    def test_existing_cache_is_io_error(self, sources_dir: Path, tmp_path: Path):
        cache = tmp_path / "cache"
        _build(sources_dir, cache)
        result = _build(sources_dir, cache)
        assert result.exit_code == 6
        assert "error:" in result.output
        assert "already exists" in result.output

    def test_force_rebuild(self, sources_dir: Path, tmp_path: Path):
        cache = tmp_path / "cache"
        _build(sources_dir, cache)
        before = (cache / MANIFEST_FILE).read_bytes()
        result = _build(sources_dir, cache, "--force")
        assert result.exit_code == 0
        assert (cache / MANIFEST_FILE).read_bytes() == before

    def test_missing_sources(self, tmp_path: Path):
        result = _build(tmp_path / "missing", tmp_path / "cache")
        assert result.exit_code == 6
        assert "error:" in result.output
        assert not (tmp_path / "cache").exists()

    def test_invalid_source_content_is_internal(self, sources_dir: Path, tmp_path: Path):
        (sources_dir / "bad.md").write_bytes(b"\xff")
        result = _build(sources_dir, tmp_path / "cache")
        assert result.exit_code == 7

    def test_uses_config_file(self, sources_dir: Path, tmp_path: Path):
        config = CtxcacheConfig()
        config.build.cache_version = "v3"
        config_path = tmp_path / "custom.toml"
        save_config(config, config_path)

        cache = tmp_path / "cache"
        result = _build(sources_dir, cache, "--config", str(config_path))
        assert result.exit_code == 0
        manifest = json.loads((cache / MANIFEST_FILE).read_text(encoding="utf-8"))
        assert manifest["cache_version"] == "v3"

    def test_invalid_config_version_is_internal(self, sources_dir: Path, tmp_path: Path):
        config_path = tmp_path / "custom.toml"
        config_path.write_text('[build]\ncache_version = "1.0"\n', encoding="utf-8")
        result = _build(sources_dir, tmp_path / "cache", "--config", str(config_path))
        assert result.exit_code == 7

    def test_missing_config_is_usage_error(self, sources_dir: Path, tmp_path: Path):
        result = _build(sources_dir, tmp_path / "cache", "--config", str(tmp_path / "no.toml"))
        assert result.exit_code == 1

    def test_mistyped_extensions_is_usage_error(self, sources_dir: Path, tmp_path: Path):
        config_path = tmp_path / "custom.toml"
        config_path.write_text('[sources]\nextensions = "md"\n', encoding="utf-8")
        result = _build(sources_dir, tmp_path / "cache", "--config", str(config_path))
        assert result.exit_code == 1
        assert "[sources] extensions" in result.output
        assert not (tmp_path / "cache").exists()


class TestResolve:
    @staticmethod
    def _cache(sources: Path, tmp_path: Path) -> Path:
        cache = tmp_path / "cache"
        assert _build(sources, cache).exit_code == 0
        return cache

    def test_deployment_example(self, sources_dir: Path, tmp_path: Path):
        cache = self._cache(sources_dir, tmp_path)
        result = _resolve(cache, "deployment", 4096)
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert list(data) == ["selection", "documents"]
        assert data["selection"]["query"] == "deployment"
        assert data["selection"]["budget"] == 4096
        assert data["documents"][0]["source"] == "docs/deployment.md"

    def test_output_is_deterministic(self, sources_dir: Path, tmp_path: Path):
        cache = self._cache(sources_dir, tmp_path)
        first = _resolve(cache, "deployment", 4096)
        second = _resolve(cache, "deployment", 4096)
        assert first.stdout == second.stdout

    def test_zero_budget(self, sources_dir: Path, tmp_path: Path):
        cache = self._cache(sources_dir, tmp_path)
        result = _resolve(cache, "deployment", 0)
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["documents"] == []
        assert data["selection"]["total_size"] == 0

    def test_empty_query(self, sources_dir: Path, tmp_path: Path):
        cache = self._cache(sources_dir, tmp_path)
        result = _resolve(cache, "", 4096)
        assert result.exit_code == 0
        assert json.loads(result.stdout)["selection"]["query"] == ""

    def test_pretty_format(self, sources_dir: Path, tmp_path: Path):
        cache = self._cache(sources_dir, tmp_path)
        compact = _resolve(cache, "deployment", 4096)
        pretty = _resolve(cache, "deployment", 4096, "--format", "pretty")
        assert pretty.exit_code == 0
        assert "\n  " in pretty.stdout
        assert json.loads(pretty.stdout) == json.loads(compact.stdout)

    def test_uniform_scorer(self, sources_dir: Path, tmp_path: Path):
        cache = self._cache(sources_dir, tmp_path)
        result = _resolve(cache, "deployment", 4096, "--scorer", "uniform")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["selection"]["scorer"] == "uniform"
        assert all(doc["score"] == 0 for doc in data["documents"])

    def test_unknown_scorer(self, sources_dir: Path, tmp_path: Path):
        cache = self._cache(sources_dir, tmp_path)
        result = _resolve(cache, "deployment", 4096, "--scorer", "semantic")
        assert result.exit_code == 1
        assert "Unknown scorer" in result.output

    def test_negative_budget(self, sources_dir: Path, tmp_path: Path):
        cache = self._cache(sources_dir, tmp_path)
        result = _resolve(cache, "deployment", -1)
        assert result.exit_code == 3
        assert "error:" in result.output

    def test_missing_cache(self, tmp_path: Path):
        result = _resolve(tmp_path / "nope", "deployment", 4096)
        assert result.exit_code == 4
        assert "error:" in result.output

    def test_invalid_manifest(self, tmp_path: Path):
        cache = tmp_path / "cache"
        cache.mkdir()
        (cache / MANIFEST_FILE).write_text("{not json", encoding="utf-8")
        result = _resolve(cache, "deployment", 4096)
        assert result.exit_code == 5

    def test_deleted_content_file(self, sources_dir: Path, tmp_path: Path):
        cache = self._cache(sources_dir, tmp_path)
        next(p for p in cache.iterdir() if p.name != MANIFEST_FILE).unlink()
        result = _resolve(cache, "deployment", 4096)
        assert result.exit_code == 5

    def test_format_from_config(self, sources_dir: Path, tmp_path: Path):
        cache = self._cache(sources_dir, tmp_path)
        config_path = tmp_path / "ctx.toml"
        config_path.write_text('[resolve]\nformat = "pretty"\n', encoding="utf-8")
        result = _resolve(cache, "deployment", 4096, "--config", str(config_path))
        assert result.exit_code == 0
        assert "\n  " in result.stdout

    def test_unknown_format_in_config(self, sources_dir: Path, tmp_path: Path):
        cache = self._cache(sources_dir, tmp_path)
        config_path = tmp_path / "ctx.toml"
        config_path.write_text('[resolve]\nformat = "yaml"\n', encoding="utf-8")
        result = _resolve(cache, "deployment", 4096, "--config", str(config_path))
        assert result.exit_code == 1
        assert "Unknown output format" in result.output


class TestInspect:
    def test_fresh_cache(self, sources_dir: Path, tmp_path: Path):
        cache = tmp_path / "cache"
        _build(sources_dir, cache)
        result = runner.invoke(app, ["inspect", "--cache", str(cache)])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["cache_version"] == "v0"
        assert data["document_count"] == 4
        assert data["valid"] is True
        assert data["total_bytes"] > 0

    def test_tampered_cache(self, sources_dir: Path, tmp_path: Path):
        cache = tmp_path / "cache"
        _build(sources_dir, cache)
        next(p for p in cache.iterdir() if p.name != MANIFEST_FILE).write_bytes(b"x")
        result = runner.invoke(app, ["inspect", "--cache", str(cache)])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["valid"] is False

    def test_missing_cache(self, tmp_path: Path):
        result = runner.invoke(app, ["inspect", "--cache", str(tmp_path / "nope")])
        assert result.exit_code == 4
        assert "error:" in result.output
