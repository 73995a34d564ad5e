"""ctxcache — deterministic document caches and budgeted context selection."""

__version__ = "0.1.0"
