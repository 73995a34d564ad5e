"""Identity assignment — derive a DocumentId from a document's logical path."""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath

from ctxcache.exceptions import IdentityError
from ctxcache.types import DocumentId

__all__ = ["assign_id", "logical_path"]

logger = logging.getLogger(__name__)


def logical_path(root: Path, path: Path) -> str:
    """Return the POSIX path of ``path`` relative to ``root``.

    Both paths are made absolute lexically; symlinks are not resolved and
    the filesystem is never touched.

    Raises:
        IdentityError: If ``path`` is not strictly inside ``root``.
    """
    abs_root = Path(os.path.abspath(root))
    abs_path = Path(os.path.abspath(path))
    try:
        rel = abs_path.relative_to(abs_root)
    except ValueError as e:
        raise IdentityError(f"Path {path} is not inside root {root}") from e

    if not rel.parts:
        raise IdentityError(f"Path {path} is the root itself, not a document")
    return str(PurePosixPath(*rel.parts))


def assign_id(root: Path, path: Path) -> DocumentId:
    """Assign a DocumentId from the path relative to ``root``.

    Pure function of the relative path: content, traversal order and
    time play no part. Collisions are the cache builder's concern.
    """
    rel = logical_path(root, path)
    doc_id = DocumentId.from_logical_path(rel)
    logger.debug("Assigned id %s to %s", doc_id, rel)
    return doc_id
