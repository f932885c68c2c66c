"""Aggregate, deduplicate and full-text search local browser history."""

__version__ = "0.1.0"
