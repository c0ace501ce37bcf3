"""Command-line interface for promptsmith."""
