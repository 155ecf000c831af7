"""Command-line entry points for typed_store."""
