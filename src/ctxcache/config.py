"""Configuration system for ctxcache.

Two layers:

- ``CacheBuildConfig``: the immutable policy handed to each cache build
  (which version tag to write).
- ``CtxcacheConfig``: the optional ``context.toml`` file with typed
  dataclass sections and sensible defaults for all values.
"""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

import tomli_w

if sys.version_info >= (3, 12):
    import tomllib
else:
    import tomli as tomllib

from ctxcache.exceptions import ConfigError, InvalidVersionFormatError

if TYPE_CHECKING:
    from pathlib import Path

_T = TypeVar("_T")

__all__ = [
    "CONFIG_FILE",
    "DEFAULT_CACHE_VERSION",
    "BuildConfig",
    "CacheBuildConfig",
    "CtxcacheConfig",
    "ResolveConfig",
    "SourcesConfig",
    "default_config",
    "is_valid_version",
    "load_config",
    "save_config",
]

logger = logging.getLogger(__name__)

CONFIG_FILE = "context.toml"
DEFAULT_CACHE_VERSION = "v0"

# v<major>[.<minor>[.<patch>]], no leading zeros
_VERSION_RE = re.compile(r"^v(0|[1-9][0-9]*)(\.(0|[1-9][0-9]*)){0,2}$")


def is_valid_version(tag: str) -> bool:
    """Check a cache version tag against the accepted grammar."""
    return isinstance(tag, str) and _VERSION_RE.match(tag) is not None


@dataclass(frozen=True)
class CacheBuildConfig:
    """Versioned policy for a single cache build."""

    cache_version: str = DEFAULT_CACHE_VERSION

    @classmethod
    def v0(cls) -> CacheBuildConfig:
        """The baseline version."""
        return cls(cache_version="v0")

    def validate(self) -> None:
        """Raise InvalidVersionFormatError if the tag is malformed."""
        if not is_valid_version(self.cache_version):
            raise InvalidVersionFormatError(self.cache_version)


def _expect(value: object, kind: type, where: str) -> None:
    """Raise ConfigError unless ``value`` is an instance of ``kind``."""
    if not isinstance(value, kind):
        raise ConfigError(f"{where} must be {kind.__name__}, got {type(value).__name__}")


@dataclass
class BuildConfig:
    """[build] section."""

    cache_version: str = DEFAULT_CACHE_VERSION

    def __post_init__(self) -> None:
        _expect(self.cache_version, str, "[build] cache_version")


@dataclass
class SourcesConfig:
    """[sources] section."""

    extensions: list[str] = field(default_factory=lambda: [".md"])
    include_hidden: bool = False

    def __post_init__(self) -> None:
        _expect(self.extensions, list, "[sources] extensions")
        for ext in self.extensions:
            _expect(ext, str, "[sources] extensions entry")
        _expect(self.include_hidden, bool, "[sources] include_hidden")


@dataclass
class ResolveConfig:
    """[resolve] section."""

    scorer: str = "keyword"
    format: str = "json"

    def __post_init__(self) -> None:
        _expect(self.scorer, str, "[resolve] scorer")
        _expect(self.format, str, "[resolve] format")


@dataclass
class CtxcacheConfig:
    """Root configuration combining all sections."""

    build: BuildConfig = field(default_factory=BuildConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    resolve: ResolveConfig = field(default_factory=ResolveConfig)

    def cache_build_config(self) -> CacheBuildConfig:
        """Freeze the [build] section into a CacheBuildConfig."""
        return CacheBuildConfig(cache_version=self.build.cache_version)


_SECTIONS: dict[str, type] = {
    "build": BuildConfig,
    "sources": SourcesConfig,
    "resolve": ResolveConfig,
}


def default_config() -> CtxcacheConfig:
    """Return a config with all default values."""
    return CtxcacheConfig()


def _config_to_dict(config: CtxcacheConfig) -> dict[str, object]:
    """Convert CtxcacheConfig to a nested dict suitable for TOML serialization."""
    return {name: dict(vars(getattr(config, name))) for name in _SECTIONS}


def save_config(config: CtxcacheConfig, path: Path) -> None:
    """Save configuration to a TOML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = _config_to_dict(config)
    try:
        with path.open("wb") as f:
            tomli_w.dump(data, f)
        logger.info("Saved config to %s", path)
    except OSError as e:
        logger.error("Failed to save config to %s: %s", path, e)
        raise ConfigError(f"Failed to save config to {path}: {e}") from e


def _load_section(cls: type[_T], data: object) -> _T:
    """Load a dataclass section from a dict, ignoring unknown keys."""
    if not isinstance(data, dict):
        raise ConfigError(f"Config section for {cls.__name__} must be a table")
    known_fields = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
    filtered = {k: v for k, v in data.items() if k in known_fields}
    return cls(**filtered)


def load_config(path: Path) -> CtxcacheConfig:
    """Load configuration from a TOML file.

    Missing sections or keys get default values.
    """
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = path.read_bytes()
        data = tomllib.loads(raw.decode("utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    config = CtxcacheConfig()
    for name, cls in _SECTIONS.items():
        if name in data:
            setattr(config, name, _load_section(cls, data[name]))

    logger.info("Loaded config from %s", path)
    return config
