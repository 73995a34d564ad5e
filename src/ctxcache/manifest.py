"""Manifest codec for ctxcache.

The manifest is the index of a built cache. Its encoding is canonical
(sorted keys, fixed indent, trailing newline) so equal manifests always
produce equal bytes.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ctxcache.exceptions import (
    CacheIOError,
    CacheMissingError,
    ManifestParseError,
    SerializationError,
)
from ctxcache.types import DocumentId

if TYPE_CHECKING:
    from pathlib import Path

    from ctxcache.types import Metadata

__all__ = [
    "MANIFEST_FILE",
    "CacheManifest",
    "DocumentEntry",
    "compute_hash",
    "decode_manifest",
    "encode_manifest",
    "load_manifest",
    "write_manifest",
]

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"


@dataclass(frozen=True)
class DocumentEntry:
    """Immutable record of one cached document."""

    id: DocumentId
    file: str
    source: str
    size: int
    hash: str = ""
    metadata: Metadata = ()


@dataclass(frozen=True)
class CacheManifest:
    """Persisted description of a built cache.

    ``documents`` is ordered ascending by id when written by the builder.
    """

    cache_version: str
    document_count: int = 0
    documents: tuple[DocumentEntry, ...] = field(default_factory=tuple)


def compute_hash(content: bytes) -> str:
    """Return the SHA-256 of content as ``sha256:<hex>``."""
    return f"sha256:{hashlib.sha256(content).hexdigest()}"


def _entry_to_dict(entry: DocumentEntry) -> dict[str, object]:
    """Serialize a DocumentEntry to a dict."""
    d: dict[str, object] = {
        "id": entry.id.value,
        "file": entry.file,
        "source": entry.source,
        "size": entry.size,
    }
    if entry.hash:
        d["hash"] = entry.hash
    if entry.metadata:
        d["metadata"] = dict(entry.metadata)
    return d


def _require(data: dict[str, Any], key: str, kind: type, where: str) -> Any:
    if key not in data:
        raise ManifestParseError(f"{where} missing required field {key!r}")
    value = data[key]
    # bool is an int subclass; a JSON true is never a valid size or count
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ManifestParseError(
            f"{where} field {key!r} must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _entry_from_dict(data: object, index: int) -> DocumentEntry:
    """Deserialize a DocumentEntry from a dict."""
    where = f"Document entry {index}"
    if not isinstance(data, dict):
        raise ManifestParseError(f"{where} must be an object")

    raw_id = _require(data, "id", str, where)
    try:
        doc_id = DocumentId(raw_id)
    except ValueError as e:
        raise ManifestParseError(f"{where} has malformed id: {e}") from e

    metadata = data.get("metadata", {})
    if not isinstance(metadata, dict):
        raise ManifestParseError(f"{where} field 'metadata' must be an object")
    entry_hash = data.get("hash", "")
    if not isinstance(entry_hash, str):
        raise ManifestParseError(f"{where} field 'hash' must be str")

    return DocumentEntry(
        id=doc_id,
        file=_require(data, "file", str, where),
        source=_require(data, "source", str, where),
        size=_require(data, "size", int, where),
        hash=entry_hash,
        metadata=tuple(sorted(metadata.items())),
    )


def encode_manifest(manifest: CacheManifest) -> bytes:
    """Encode a manifest to canonical JSON bytes.

    Raises:
        SerializationError: If a value cannot be represented in JSON.
    """
    data = {
        "cache_version": manifest.cache_version,
        "document_count": manifest.document_count,
        "documents": [_entry_to_dict(e) for e in manifest.documents],
    }
    try:
        text = json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to encode manifest: {e}") from e
    return (text + "\n").encode("utf-8")


def decode_manifest(data: bytes) -> CacheManifest:
    """Decode manifest bytes.

    Checks structure and field types only; uniqueness and count matching
    are left to the writer and reader.

    Raises:
        ManifestParseError: On malformed JSON or schema mismatch.
    """
    try:
        raw = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestParseError(f"Invalid manifest JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ManifestParseError("Manifest root must be an object")

    cache_version = _require(raw, "cache_version", str, "Manifest")
    document_count = _require(raw, "document_count", int, "Manifest")
    documents = _require(raw, "documents", list, "Manifest")

    return CacheManifest(
        cache_version=cache_version,
        document_count=document_count,
        documents=tuple(_entry_from_dict(d, i) for i, d in enumerate(documents)),
    )


def write_manifest(payload: bytes, path: Path) -> None:
    """Write an already-encoded manifest to ``path``.

    Encoding is kept separate so callers can fail on a bad manifest before
    touching the filesystem.

    Raises:
        CacheIOError: If the file cannot be written.
    """
    try:
        path.write_bytes(payload)
    except OSError as e:
        logger.error("Failed to write manifest %s: %s", path, e)
        raise CacheIOError(f"Failed to write manifest {path}: {e}") from e
    logger.info("Wrote manifest to %s", path)


def load_manifest(path: Path) -> CacheManifest:
    """Read and decode a manifest file.

    Raises:
        CacheMissingError: If the file does not exist.
        CacheIOError: If the file cannot be read.
        ManifestParseError: If the content is malformed.
    """
    if not path.is_file():
        raise CacheMissingError(f"Manifest file not found: {path}")

    try:
        raw = path.read_bytes()
    except OSError as e:
        logger.error("Failed to load manifest from %s: %s", path, e)
        raise CacheIOError(f"Failed to load manifest from {path}: {e}") from e

    manifest = decode_manifest(raw)
    logger.info("Loaded manifest from %s (%d documents)", path, len(manifest.documents))
    return manifest
