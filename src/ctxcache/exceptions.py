"""Custom exception hierarchy for ctxcache."""

__all__ = [
    "CacheIOError",
    "CacheIntegrityError",
    "CacheMissingError",
    "ConfigError",
    "CtxcacheError",
    "DuplicateDocumentIdError",
    "FilenameCollisionError",
    "IdentityError",
    "IngestError",
    "InvalidBudgetError",
    "InvalidVersionFormatError",
    "ManifestParseError",
    "OutputAlreadyExistsError",
    "PluginError",
    "SerializationError",
    "SourcesNotFoundError",
]


class CtxcacheError(Exception):
    """Base exception for all ctxcache errors."""


class ConfigError(CtxcacheError):
    """Raised when configuration loading or validation fails."""


class PluginError(CtxcacheError):
    """Raised when scorer registration or lookup fails."""


class IdentityError(CtxcacheError):
    """Raised when a document path cannot be turned into a DocumentId."""


class IngestError(CtxcacheError):
    """Raised when raw content is not a well-formed text document."""


class OutputAlreadyExistsError(CtxcacheError):
    """Raised when the build target directory already exists."""

    def __init__(self, path: object) -> None:
        self.path = path
        super().__init__(f"Output already exists: {path}")


class DuplicateDocumentIdError(CtxcacheError):
    """Raised when two documents in one batch share a DocumentId."""

    def __init__(self, doc_id: object) -> None:
        self.doc_id = doc_id
        super().__init__(f"Duplicate document id: {doc_id}")


class FilenameCollisionError(CtxcacheError):
    """Raised when two distinct ids derive the same content filename."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f"Filename collision: {filename}")


class InvalidVersionFormatError(CtxcacheError):
    """Raised when a cache version tag does not match the accepted grammar."""

    def __init__(self, tag: str) -> None:
        self.tag = tag
        super().__init__(f"Invalid version format: {tag!r}")


class SerializationError(CtxcacheError):
    """Raised when the manifest encoder fails."""


class CacheIOError(CtxcacheError):
    """Raised when reading or writing cache files fails."""


class CacheMissingError(CacheIOError):
    """Raised when a cache directory or its manifest does not exist."""


class SourcesNotFoundError(CacheIOError):
    """Raised when the sources directory for a build does not exist."""


class ManifestParseError(CtxcacheError):
    """Raised when a manifest is malformed or does not match the schema."""


class CacheIntegrityError(CtxcacheError):
    """Raised when a cache's content files disagree with its manifest."""


class InvalidBudgetError(CtxcacheError):
    """Raised when a selection budget is not a non-negative integer."""

    def __init__(self, budget: object) -> None:
        self.budget = budget
        super().__init__(f"Invalid budget: {budget!r} (expected a non-negative integer)")
