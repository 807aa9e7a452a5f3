"""Command-line interface for rhizo-rf."""
