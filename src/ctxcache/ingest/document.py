"""Document ingestion — validate raw bytes and build an immutable Document.

No content transformation: the bytes that come in are the bytes that get
cached. Only well-formedness as UTF-8 text is checked.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ctxcache.exceptions import IngestError
from ctxcache.types import Document

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ctxcache.types import DocumentId, Metadata

__all__ = ["ACCEPTED_ENCODING", "ingest", "normalize_metadata"]

logger = logging.getLogger(__name__)

ACCEPTED_ENCODING = "utf-8"


def normalize_metadata(metadata: Mapping[str, Any] | None) -> Metadata:
    """Freeze caller metadata into key-sorted pairs.

    Raises:
        IngestError: If a key is not a string.
    """
    if not metadata:
        return ()
    for key in metadata:
        if not isinstance(key, str):
            raise IngestError(f"Metadata keys must be strings, got {key!r}")
    return tuple(sorted(metadata.items()))


def ingest(
    doc_id: DocumentId,
    source: str,
    raw_content: bytes,
    metadata: Mapping[str, Any] | None = None,
) -> Document:
    """Build a Document from raw bytes and caller metadata.

    Args:
        doc_id: Identifier assigned from the logical path.
        source: Display path, relative to the ingestion root.
        raw_content: Document bytes, stored unchanged.
        metadata: Optional pass-through key/value record.

    Returns:
        Immutable Document.

    Raises:
        IngestError: If the content is not bytes or is not valid UTF-8.
    """
    if not isinstance(raw_content, (bytes, bytearray, memoryview)):
        raise IngestError(
            f"Content of {source} must be bytes, got {type(raw_content).__name__}"
        )
    content = bytes(raw_content)

    try:
        content.decode(ACCEPTED_ENCODING)
    except UnicodeDecodeError as e:
        msg = f"{source} is not valid {ACCEPTED_ENCODING} text (byte offset {e.start}): {e.reason}"
        raise IngestError(msg) from e

    document = Document(
        id=doc_id,
        source=source,
        content=content,
        metadata=normalize_metadata(metadata),
    )
    logger.debug("Ingested %s (%d bytes)", source, document.size)
    return document
