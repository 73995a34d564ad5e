"""Shared fixtures for ctxcache tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from ctxcache.cache import CacheBuilder, ContextCache, load_cache
from ctxcache.ingest import ingest
from ctxcache.types import Document, DocumentId

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

FIXTURE_DOCS: dict[str, str] = {
    "docs/api.md": "API reference for the context platform REST endpoints and authentication",
    "docs/deployment.md": (
        "Deployment guide for production environments including Docker and Kubernetes"
    ),
    "docs/architecture.md": "System architecture overview describing the cache compiler pipeline",
    "docs/quickstart.md": "Getting started with context resolve in five minutes",
}


@pytest.fixture
def make_document() -> Callable[..., Document]:
    """Factory for ingested documents keyed by logical path."""

    def _make(
        logical_path: str,
        content: str | bytes,
        metadata: dict[str, Any] | None = None,
    ) -> Document:
        raw = content.encode("utf-8") if isinstance(content, str) else content
        return ingest(DocumentId.from_logical_path(logical_path), logical_path, raw, metadata)

    return _make


@pytest.fixture
def fixture_documents(make_document: Callable[..., Document]) -> list[Document]:
    """The four sample documents, in ingestion order."""
    return [make_document(path, text) for path, text in FIXTURE_DOCS.items()]


@pytest.fixture
def sources_dir(tmp_path: Path) -> Path:
    """A sources tree holding the four sample markdown files."""
    root = tmp_path / "sources"
    for rel, text in FIXTURE_DOCS.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def built_cache(tmp_path: Path, fixture_documents: list[Document]) -> ContextCache:
    """A cache built from the sample documents."""
    root = tmp_path / "cache"
    CacheBuilder().build(fixture_documents, root)
    return load_cache(root)
