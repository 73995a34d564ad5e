"""Process exit codes for the ``context`` CLI.

The numeric values are frozen; scripts depend on them.
"""

from __future__ import annotations

from ctxcache.exceptions import (
    CacheIntegrityError,
    CacheIOError,
    CacheMissingError,
    ConfigError,
    CtxcacheError,
    DuplicateDocumentIdError,
    InvalidBudgetError,
    ManifestParseError,
    OutputAlreadyExistsError,
    PluginError,
)

__all__ = [
    "CACHE_INVALID",
    "CACHE_MISSING",
    "INTERNAL_ERROR",
    "INVALID_BUDGET",
    "INVALID_QUERY",
    "IO_ERROR",
    "SUCCESS",
    "USAGE_ERROR",
    "exit_code_for",
]

SUCCESS = 0
USAGE_ERROR = 1
INVALID_QUERY = 2
INVALID_BUDGET = 3
CACHE_MISSING = 4
CACHE_INVALID = 5
IO_ERROR = 6
INTERNAL_ERROR = 7

# Checked in order; subclasses before their bases.
_CODE_MAP: tuple[tuple[type[CtxcacheError], int], ...] = (
    (CacheMissingError, CACHE_MISSING),
    (CacheIOError, IO_ERROR),
    (OutputAlreadyExistsError, IO_ERROR),
    (ManifestParseError, CACHE_INVALID),
    (CacheIntegrityError, CACHE_INVALID),
    (DuplicateDocumentIdError, CACHE_INVALID),
    (InvalidBudgetError, INVALID_BUDGET),
    (ConfigError, USAGE_ERROR),
    (PluginError, USAGE_ERROR),
)


def exit_code_for(error: CtxcacheError) -> int:
    """Map a ctxcache error to its exit code.

    Serialization failures, filename collisions, malformed version tags
    and ingestion/identity errors are internal errors.
    """
    for cls, code in _CODE_MAP:
        if isinstance(error, cls):
            return code
    return INTERNAL_ERROR
