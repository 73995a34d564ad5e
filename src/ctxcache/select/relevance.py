"""Deterministic keyword scoring for document relevance.

Scores documents by how often the query's terms occur in their content
and whether the terms appear in their source path. Integer arithmetic
only, so scores are exactly reproducible across runs and platforms.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Protocol

from ctxcache.types import tokenize

if TYPE_CHECKING:
    from ctxcache.types import Document, Query

__all__ = ["PATH_WEIGHT", "Scorer", "keyword_score", "query_keywords", "uniform_score"]

logger = logging.getLogger(__name__)

# Bonus for a query term that names the document's path, e.g. "deployment"
# for docs/deployment.md.
PATH_WEIGHT = 10

# Common English stopwords; they carry no ranking signal.
_STOPWORDS: frozenset[str] = frozenset(
    {
        "about",
        "after",
        "all",
        "also",
        "an",
        "and",
        "any",
        "are",
        "as",
        "at",
        "be",
        "been",
        "before",
        "between",
        "but",
        "by",
        "can",
        "could",
        "did",
        "do",
        "does",
        "each",
        "for",
        "from",
        "had",
        "has",
        "have",
        "how",
        "if",
        "in",
        "into",
        "is",
        "it",
        "its",
        "may",
        "more",
        "most",
        "must",
        "no",
        "not",
        "of",
        "on",
        "or",
        "other",
        "should",
        "so",
        "some",
        "such",
        "than",
        "that",
        "the",
        "their",
        "them",
        "then",
        "there",
        "these",
        "they",
        "this",
        "to",
        "too",
        "very",
        "was",
        "what",
        "when",
        "where",
        "which",
        "who",
        "will",
        "with",
        "would",
        "you",
    }
)


class Scorer(Protocol):
    """A pure function ranking one document against a query."""

    def __call__(self, query: Query, document: Document) -> int: ...


def query_keywords(query: Query) -> tuple[str, ...]:
    """Distinct, stopword-filtered query terms in first-seen order."""
    return tuple(t for t in query.terms if t not in _STOPWORDS)


def keyword_score(query: Query, document: Document) -> int:
    """Score a document by keyword occurrences.

    For each distinct query keyword: the number of times it occurs in the
    document content, plus ``PATH_WEIGHT`` when it is also a token of the
    document's source path.

    Args:
        query: Selection query. An empty query scores 0 everywhere.
        document: Candidate document.

    Returns:
        Non-negative integer score.
    """
    keywords = query_keywords(query)
    if not keywords:
        return 0
    counts = Counter(tokenize(document.text))
    path_tokens = set(tokenize(document.source))
    score = 0
    for term in keywords:
        score += counts[term]
        if term in path_tokens:
            score += PATH_WEIGHT
    return score


def uniform_score(query: Query, document: Document) -> int:
    """Score every document 0, leaving the id tie-break as the only order."""
    return 0
