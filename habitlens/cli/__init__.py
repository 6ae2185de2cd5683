"""Command-line interface for habitlens."""
