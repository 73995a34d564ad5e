"""Scorer registry for ctxcache.

Maps config strings to relevance scoring functions.
Example: ``registry.get("keyword")`` → ``keyword_score``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ctxcache.exceptions import PluginError

if TYPE_CHECKING:
    from ctxcache.select.relevance import Scorer

__all__ = ["ScorerRegistry", "default_registry"]

logger = logging.getLogger(__name__)


class ScorerRegistry:
    """Name → scorer lookup used by the context selector.

    When ``auto_discover`` is ``True``, the first lookup triggers a lazy
    import of ``ctxcache.select`` so that the built-in scorers are
    registered without requiring an explicit import.

    Usage::

        registry = ScorerRegistry()
        registry.register("length", lambda query, doc: -doc.size)
        scorer = registry.get("length")
    """

    def __init__(self, *, auto_discover: bool = False) -> None:
        self._scorers: dict[str, Scorer] = {}
        self._auto_discover = auto_discover
        self._discovered = False

    def register(self, name: str, scorer: Scorer) -> None:
        """Register a scorer under ``name``.

        Raises:
            PluginError: If a scorer with the same name already exists.
        """
        if name in self._scorers:
            raise PluginError(f"Scorer '{name}' already registered")
        self._scorers[name] = scorer
        logger.debug("Registered scorer %s", name)

    def _ensure_discovered(self) -> None:
        """Lazily import built-in scorers on first use."""
        if self._discovered or not self._auto_discover:
            return
        self._discovered = True
        import ctxcache.select  # noqa: F401 — triggers scorer registration

    def get(self, name: str) -> Scorer:
        """Return the scorer registered under ``name``.

        Raises:
            PluginError: If no scorer has that name.
        """
        self._ensure_discovered()
        if name not in self._scorers:
            raise PluginError(f"Unknown scorer '{name}'. Available: {sorted(self._scorers)}")
        return self._scorers[name]

    def list_scorers(self) -> list[str]:
        """List registered scorer names, sorted."""
        self._ensure_discovered()
        return sorted(self._scorers)

    def has_scorer(self, name: str) -> bool:
        """Check whether a scorer is registered."""
        self._ensure_discovered()
        return name in self._scorers


default_registry = ScorerRegistry(auto_discover=True)
