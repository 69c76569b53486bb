"""Command-line interface for Graft."""
