"""Command-line interface for cisummary."""
