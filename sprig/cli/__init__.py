"""Command-line interface for sprig."""
