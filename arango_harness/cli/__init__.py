"""Command line interface for the harness."""
