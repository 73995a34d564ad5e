"""Budget-constrained context selection.

Ranks every document in a cache against a query and greedily packs the
highest-ranked ones into a byte budget. The result is a pure function of
(manifest, content, query, budget): no shared state, safe to call
concurrently on the same cache.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ctxcache.cache import is_plain_filename
from ctxcache.exceptions import CacheIntegrityError, InvalidBudgetError
from ctxcache.manifest import compute_hash
from ctxcache.registry import default_registry
from ctxcache.select.relevance import keyword_score
from ctxcache.types import Document, Query, SelectedDocument, Selection, SelectionResult

if TYPE_CHECKING:
    from ctxcache.cache import ContextCache
    from ctxcache.manifest import DocumentEntry
    from ctxcache.registry import ScorerRegistry
    from ctxcache.select.relevance import Scorer

__all__ = ["ContextSelector", "select", "validate_budget"]

logger = logging.getLogger(__name__)


def validate_budget(budget: object) -> int:
    """Return ``budget`` if it is a non-negative integer.

    Raises:
        InvalidBudgetError: Otherwise.
    """
    if isinstance(budget, bool) or not isinstance(budget, int) or budget < 0:
        raise InvalidBudgetError(budget)
    return budget


def _read_document(cache: ContextCache, entry: DocumentEntry) -> Document:
    """Load one entry's content, checking it against the manifest."""
    if not is_plain_filename(entry.file):
        raise CacheIntegrityError(
            f"Manifest entry {entry.source} has unsafe file name {entry.file!r}"
        )

    path = cache.root / entry.file
    try:
        content = path.read_bytes()
    except OSError as e:
        raise CacheIntegrityError(
            f"Content file {entry.file} for {entry.source} is missing or unreadable: {e}"
        ) from e

    if len(content) != entry.size:
        raise CacheIntegrityError(
            f"Content file {entry.file} is {len(content)} bytes, manifest says {entry.size}"
        )
    if entry.hash and compute_hash(content) != entry.hash:
        raise CacheIntegrityError(
            f"Content file {entry.file} for {entry.source} does not match its recorded hash"
        )

    document = Document(
        id=entry.id, source=entry.source, content=content, metadata=entry.metadata
    )
    # Decodes once; scorers and the result reuse the cached text.
    try:
        document.text  # noqa: B018
    except UnicodeDecodeError as e:
        raise CacheIntegrityError(f"Content file {entry.file} is not valid UTF-8") from e
    return document


def _load_documents(cache: ContextCache) -> list[Document]:
    """Load all documents, tolerating cross-field manifest inconsistencies."""
    manifest = cache.manifest
    if manifest.document_count != len(manifest.documents):
        logger.warning(
            "Manifest declares %d documents but lists %d",
            manifest.document_count,
            len(manifest.documents),
        )

    documents: list[Document] = []
    seen = set()
    for entry in manifest.documents:
        if entry.id in seen:
            logger.warning("Skipping duplicate manifest entry for id %s", entry.id)
            continue
        seen.add(entry.id)
        documents.append(_read_document(cache, entry))
    return documents


class ContextSelector:
    """Selects the documents that best answer a query within a budget.

    Usage::

        selector = ContextSelector()
        result = selector.select(load_cache(Path("cache")), Query("deployment"), 4096)
    """

    def __init__(self, scorer: Scorer = keyword_score, name: str = "keyword") -> None:
        self.scorer = scorer
        self.name = name

    @classmethod
    def from_name(cls, name: str, registry: ScorerRegistry | None = None) -> ContextSelector:
        """Build a selector around a registered scorer.

        Raises:
            PluginError: If ``name`` is not registered.
        """
        scorer = (registry or default_registry).get(name)
        return cls(scorer=scorer, name=name)

    def select(self, cache: ContextCache, query: Query, budget: int) -> SelectionResult:
        """Rank and pack documents from ``cache`` for ``query``.

        Candidates are ordered by score descending, then id ascending. Each
        is included if it still fits in the remaining budget; a candidate
        that does not fit does not stop smaller ones behind it.

        Args:
            cache: Loaded cache handle.
            query: Query; the empty query is valid.
            budget: Maximum total content bytes. Zero selects nothing.

        Returns:
            Selected documents in selection order plus a request echo.

        Raises:
            InvalidBudgetError: If ``budget`` is not a non-negative integer.
            CacheIntegrityError: If a content file is missing or inconsistent.
        """
        budget = validate_budget(budget)
        documents = _load_documents(cache)

        ranked = sorted(
            ((self.scorer(query, doc), doc) for doc in documents),
            key=lambda item: (-item[0], item[1].id),
        )

        selected: list[SelectedDocument] = []
        total = 0
        if budget > 0:
            for score, doc in ranked:
                if total + doc.size > budget:
                    logger.debug("Skipping %s (%d bytes): over budget", doc.source, doc.size)
                    continue
                total += doc.size
                selected.append(
                    SelectedDocument(
                        id=doc.id,
                        source=doc.source,
                        size=doc.size,
                        score=score,
                        content=doc.text,
                    )
                )

        logger.info(
            "Selected %d/%d documents (%d/%d bytes) for query %r",
            len(selected),
            len(documents),
            total,
            budget,
            query.text,
        )
        return SelectionResult(
            selection=Selection(
                query=query.text, budget=budget, scorer=self.name, total_size=total
            ),
            documents=tuple(selected),
        )


def select(
    cache: ContextCache,
    query: Query | str,
    budget: int,
    scorer: str = "keyword",
) -> SelectionResult:
    """Select documents with a registered scorer.

    Convenience wrapper around :class:`ContextSelector`; a plain string is
    wrapped into a :class:`Query`.
    """
    if isinstance(query, str):
        query = Query(query)
    return ContextSelector.from_name(scorer).select(cache, query, budget)
