"""Context selection — rank cached documents and pack them into a budget."""

from ctxcache.registry import default_registry
from ctxcache.select.relevance import Scorer, keyword_score, uniform_score
from ctxcache.select.selector import ContextSelector, select, validate_budget

__all__ = [
    "ContextSelector",
    "Scorer",
    "keyword_score",
    "select",
    "uniform_score",
    "validate_budget",
]

# Register built-in scorers
default_registry.register("keyword", keyword_score)
default_registry.register("uniform", uniform_score)
