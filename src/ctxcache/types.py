"""Data contracts for ctxcache.

Frozen dataclasses that flow between the build and selection stages:
  (logical path, bytes, metadata) → Document → cache → SelectionResult
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

__all__ = [
    "Document",
    "DocumentId",
    "Metadata",
    "Query",
    "SelectedDocument",
    "Selection",
    "SelectionResult",
    "tokenize",
]

# Pass-through metadata, kept as key-sorted pairs so records stay hashable.
Metadata = tuple[tuple[str, Any], ...]

_HEX_DIGEST_RE = re.compile(r"^[0-9a-f]{64}$")

# Lowercase alphanumeric words of two or more characters.
_WORD_RE = re.compile(r"[a-z0-9]{2,}")


def tokenize(text: str) -> list[str]:
    """Split text into lowercase word tokens, in order of appearance."""
    if not text:
        return []
    return _WORD_RE.findall(text.lower())


@dataclass(frozen=True, order=True)
class DocumentId:
    """Stable identifier derived from a document's logical path.

    Wraps the SHA-256 hex digest of the POSIX relative path, so ordering
    is plain string ordering of the digest.
    """

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not _HEX_DIGEST_RE.match(self.value):
            raise ValueError(f"DocumentId must be 64 lowercase hex characters, got {self.value!r}")

    @classmethod
    def from_logical_path(cls, logical_path: str) -> DocumentId:
        """Hash an already-relative POSIX path into a DocumentId."""
        return cls(hashlib.sha256(logical_path.encode("utf-8")).hexdigest())

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Document:
    """An ingested document. Content is the raw bytes, never transformed."""

    id: DocumentId
    source: str
    content: bytes
    metadata: Metadata = ()

    @property
    def size(self) -> int:
        return len(self.content)

    @cached_property
    def text(self) -> str:
        """Content decoded as UTF-8, computed once per document."""
        return self.content.decode("utf-8")


@dataclass(frozen=True)
class Query:
    """A selection query. The empty string is a valid query with no terms."""

    text: str = ""

    @property
    def terms(self) -> tuple[str, ...]:
        """Distinct query tokens in first-seen order."""
        return tuple(dict.fromkeys(tokenize(self.text)))


@dataclass(frozen=True)
class SelectedDocument:
    """A document as returned by the selector."""

    id: DocumentId
    source: str
    size: int
    score: int
    content: str


@dataclass(frozen=True)
class Selection:
    """Echo of the selection request plus the budget actually consumed."""

    query: str
    budget: int
    scorer: str
    total_size: int = 0


@dataclass(frozen=True)
class SelectionResult:
    """Selected documents in selection order (highest score first)."""

    selection: Selection
    documents: tuple[SelectedDocument, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        """Plain, order-stable structure for JSON rendering."""
        return {
            "selection": {
                "query": self.selection.query,
                "budget": self.selection.budget,
                "scorer": self.selection.scorer,
                "total_size": self.selection.total_size,
            },
            "documents": [
                {
                    "id": doc.id.value,
                    "source": doc.source,
                    "size": doc.size,
                    "score": doc.score,
                    "content": doc.content,
                }
                for doc in self.documents
            ],
        }
