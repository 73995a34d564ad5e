"""Build pipeline for ctxcache.

Composes discovery → identity → ingest → cache build for a sources
directory on disk.
"""

from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING

from ctxcache.cache import CacheBuilder
from ctxcache.config import CtxcacheConfig
from ctxcache.exceptions import CacheIOError
from ctxcache.identity import assign_id, logical_path
from ctxcache.ingest import ingest, iter_source_paths

if TYPE_CHECKING:
    from pathlib import Path

    from ctxcache.manifest import CacheManifest
    from ctxcache.types import Document

__all__ = ["BuildPipeline", "remove_cache"]

logger = logging.getLogger(__name__)


def remove_cache(target: Path) -> None:
    """Delete an existing output so it can be rebuilt.

    Raises:
        CacheIOError: If removal fails.
    """
    try:
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()
    except OSError as e:
        logger.error("Failed to remove %s: %s", target, e)
        raise CacheIOError(f"Failed to remove existing cache {target}: {e}") from e
    logger.info("Removed existing cache at %s", target)


class BuildPipeline:
    """Builds a cache from a directory of source files.

    Usage::

        pipeline = BuildPipeline(config)
        manifest = pipeline.run(Path("docs"), Path("cache"), force=True)
    """

    def __init__(self, config: CtxcacheConfig | None = None) -> None:
        self.config = config or CtxcacheConfig()

    def collect(self, sources: Path) -> list[Document]:
        """Discover and ingest every source file under ``sources``.

        Raises:
            SourcesNotFoundError: If ``sources`` is not a directory.
            CacheIOError: If a source file cannot be read.
            IngestError: If a source file is not valid text.
        """
        documents: list[Document] = []
        for path in iter_source_paths(
            sources,
            extensions=self.config.sources.extensions,
            include_hidden=self.config.sources.include_hidden,
        ):
            try:
                raw = path.read_bytes()
            except OSError as e:
                raise CacheIOError(f"Failed to read source {path}: {e}") from e
            documents.append(ingest(assign_id(sources, path), logical_path(sources, path), raw))
        return documents

    def run(self, sources: Path, target: Path, force: bool = False) -> CacheManifest:
        """Build ``target`` from the files under ``sources``.

        Args:
            sources: Directory of source documents.
            target: Output cache directory.
            force: Remove ``target`` first if it already exists.

        Returns:
            Manifest of the built cache.
        """
        logger.info("Building cache %s from %s", target, sources)
        documents = self.collect(sources)

        if force and (target.exists() or target.is_symlink()):
            remove_cache(target)

        builder = CacheBuilder(self.config.cache_build_config())
        return builder.build(documents, target)
