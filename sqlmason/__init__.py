"""sqlmason - in-memory SQLite schema cache with deterministic SQL generation."""

__version__ = "1.0.0"
