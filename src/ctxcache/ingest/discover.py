"""Source discovery — find the text files under a sources directory.

Yields paths in logical-path order so that discovery never depends on the
order the filesystem happens to enumerate entries in.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ctxcache.exceptions import SourcesNotFoundError
from ctxcache.identity import logical_path

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

__all__ = ["DEFAULT_EXTENSIONS", "iter_source_paths"]

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".md",)


def _normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    normalized = set()
    for ext in extensions:
        cleaned = ext.strip().lower()
        if not cleaned:
            continue
        normalized.add(cleaned if cleaned.startswith(".") else f".{cleaned}")
    return frozenset(normalized)


def _is_hidden(rel_parts: tuple[str, ...]) -> bool:
    return any(part.startswith(".") for part in rel_parts)


def iter_source_paths(
    sources: Path,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    include_hidden: bool = False,
) -> Iterator[Path]:
    """Yield source files under ``sources`` sorted by logical path.

    Args:
        sources: Root directory to walk.
        extensions: Accepted suffixes, matched case-insensitively.
        include_hidden: Also yield files under dot-prefixed names.

    Raises:
        SourcesNotFoundError: If ``sources`` is not a directory.
    """
    if not sources.is_dir():
        raise SourcesNotFoundError(f"Sources directory does not exist: {sources}")

    accepted = _normalize_extensions(extensions)
    found: list[tuple[str, Path]] = []
    for path in sources.rglob("*"):
        if not path.is_file():
            continue
        rel = path.relative_to(sources)
        if not include_hidden and _is_hidden(rel.parts):
            continue
        if path.suffix.lower() not in accepted:
            continue
        found.append((logical_path(sources, path), path))

    found.sort(key=lambda item: item[0])
    logger.info("Discovered %d source file(s) under %s", len(found), sources)
    for _, path in found:
        yield path
