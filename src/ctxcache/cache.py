"""Cache builder and read-only cache handles.

A cache directory holds one content file per document plus
``manifest.json``. Caches are written once into a fresh directory and
never modified afterwards.

Layout::

    <root>/manifest.json
    <root>/<first 16 hex chars of id>.txt
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import TYPE_CHECKING

from ctxcache.config import CacheBuildConfig
from ctxcache.exceptions import (
    CacheIOError,
    CacheMissingError,
    DuplicateDocumentIdError,
    FilenameCollisionError,
    OutputAlreadyExistsError,
)
from ctxcache.manifest import (
    MANIFEST_FILE,
    CacheManifest,
    DocumentEntry,
    compute_hash,
    encode_manifest,
    load_manifest,
    write_manifest,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ctxcache.types import Document, DocumentId

__all__ = [
    "CONTENT_EXTENSION",
    "CacheBuilder",
    "CacheReport",
    "ContextCache",
    "content_filename",
    "inspect_cache",
    "is_plain_filename",
    "load_cache",
]

logger = logging.getLogger(__name__)

CONTENT_EXTENSION = ".txt"
FILENAME_ID_CHARS = 16


def content_filename(doc_id: DocumentId) -> str:
    """Derive the fixed-width content filename for a document id."""
    return f"{doc_id.value[:FILENAME_ID_CHARS]}{CONTENT_EXTENSION}"


def is_plain_filename(name: str) -> bool:
    """True if ``name`` is a single path component with no traversal."""
    if not name or name in (".", ".."):
        return False
    return PurePath(name).name == name and "/" not in name and "\\" not in name


@dataclass(frozen=True)
class ContextCache:
    """Read-only handle over a built cache directory."""

    root: Path
    manifest: CacheManifest


@dataclass(frozen=True)
class CacheReport:
    """Summary of a cache's on-disk state."""

    cache_version: str
    document_count: int
    total_bytes: int
    valid: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "cache_version": self.cache_version,
            "document_count": self.document_count,
            "total_bytes": self.total_bytes,
            "valid": self.valid,
        }


class CacheBuilder:
    """Writes a batch of documents into a fresh cache directory.

    All structural checks (existing output, version tag, duplicate ids,
    filename collisions, manifest encoding) complete before anything is
    written, so those failures never leave a directory behind.

    Usage::

        builder = CacheBuilder(CacheBuildConfig.v0())
        manifest = builder.build(documents, Path("cache"))
    """

    def __init__(self, config: CacheBuildConfig | None = None) -> None:
        self.config = config or CacheBuildConfig.v0()

    def build(self, documents: Iterable[Document], target_dir: Path) -> CacheManifest:
        """Build a cache from ``documents`` into ``target_dir``.

        Args:
            documents: Ingested documents, in any order.
            target_dir: Output directory; must not exist yet.

        Returns:
            The manifest that was written.

        Raises:
            OutputAlreadyExistsError: If ``target_dir`` exists.
            InvalidVersionFormatError: If the configured tag is malformed.
            DuplicateDocumentIdError: If two documents share an id.
            FilenameCollisionError: If two ids derive the same filename.
            SerializationError: If the manifest cannot be encoded.
            CacheIOError: If writing fails. Partial output may remain.
        """
        if target_dir.exists():
            raise OutputAlreadyExistsError(target_dir)

        self.config.validate()

        batch = list(documents)
        seen: set[DocumentId] = set()
        for doc in batch:
            if doc.id in seen:
                raise DuplicateDocumentIdError(doc.id)
            seen.add(doc.id)

        batch.sort(key=lambda d: d.id)

        filenames: dict[str, DocumentId] = {}
        entries: list[DocumentEntry] = []
        for doc in batch:
            filename = content_filename(doc.id)
            if filename in filenames:
                raise FilenameCollisionError(filename)
            filenames[filename] = doc.id
            entries.append(
                DocumentEntry(
                    id=doc.id,
                    file=filename,
                    source=doc.source,
                    size=doc.size,
                    hash=compute_hash(doc.content),
                    metadata=doc.metadata,
                )
            )

        manifest = CacheManifest(
            cache_version=self.config.cache_version,
            document_count=len(entries),
            documents=tuple(entries),
        )
        payload = encode_manifest(manifest)

        self._write(target_dir, batch, entries, payload)
        logger.info(
            "Built cache at %s: %d documents, version %s",
            target_dir,
            manifest.document_count,
            manifest.cache_version,
        )
        return manifest

    @staticmethod
    def _write(
        target_dir: Path,
        batch: list[Document],
        entries: list[DocumentEntry],
        payload: bytes,
    ) -> None:
        try:
            target_dir.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create parent of %s: %s", target_dir, e)
            raise CacheIOError(f"Failed to create cache directory {target_dir}: {e}") from e
        try:
            target_dir.mkdir()
        except FileExistsError as e:
            raise OutputAlreadyExistsError(target_dir) from e
        except OSError as e:
            logger.error("Failed to create cache directory %s: %s", target_dir, e)
            raise CacheIOError(f"Failed to create cache directory {target_dir}: {e}") from e

        for doc, entry in zip(batch, entries):
            path = target_dir / entry.file
            try:
                path.write_bytes(doc.content)
            except OSError as e:
                logger.error("Failed to write %s: %s", path, e)
                raise CacheIOError(f"Failed to write {path}: {e}") from e
            logger.debug("Wrote %s (%s, %d bytes)", entry.file, entry.source, entry.size)

        # Manifest goes last: a directory without one is never a usable cache.
        write_manifest(payload, target_dir / MANIFEST_FILE)


def load_cache(root: Path) -> ContextCache:
    """Load a cache handle from a built cache directory.

    Raises:
        CacheMissingError: If the directory or its manifest does not exist.
        CacheIOError: If the manifest cannot be read.
        ManifestParseError: If the manifest is malformed.
    """
    if not root.is_dir():
        raise CacheMissingError(f"Cache does not exist: {root}")
    manifest = load_manifest(root / MANIFEST_FILE)
    return ContextCache(root=root, manifest=manifest)


def inspect_cache(cache: ContextCache) -> CacheReport:
    """Summarize a cache: total on-disk bytes and whether every file is intact.

    A cache is valid when every referenced content file exists, its size
    matches the manifest entry, and its SHA-256 matches the recorded hash
    when the entry carries one.
    """
    total_bytes = 0
    valid = True
    for entry in cache.manifest.documents:
        if not is_plain_filename(entry.file):
            logger.warning("Manifest entry %s has unsafe file name %r", entry.id, entry.file)
            valid = False
            continue
        try:
            content = (cache.root / entry.file).read_bytes()
        except OSError:
            logger.warning("Content file %s for %s is missing", entry.file, entry.source)
            valid = False
            continue
        size = len(content)
        total_bytes += size
        if size != entry.size:
            logger.warning(
                "Content file %s is %d bytes, manifest says %d", entry.file, size, entry.size
            )
            valid = False
        elif entry.hash and compute_hash(content) != entry.hash:
            logger.warning("Content file %s does not match its recorded hash", entry.file)
            valid = False

    return CacheReport(
        cache_version=cache.manifest.cache_version,
        document_count=cache.manifest.document_count,
        total_bytes=total_bytes,
        valid=valid,
    )
