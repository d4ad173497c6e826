"""Command-line interface for qbopulse."""
