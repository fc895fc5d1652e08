"""Shared helpers: datetime parsing, statistics and error-handling patterns."""
