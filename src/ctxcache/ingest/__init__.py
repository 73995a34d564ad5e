"""Ingestion — discover source files and turn raw bytes into Documents."""

from ctxcache.ingest.discover import DEFAULT_EXTENSIONS, iter_source_paths
from ctxcache.ingest.document import ACCEPTED_ENCODING, ingest, normalize_metadata

__all__ = [
    "ACCEPTED_ENCODING",
    "DEFAULT_EXTENSIONS",
    "ingest",
    "iter_source_paths",
    "normalize_metadata",
]
