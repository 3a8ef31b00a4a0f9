"""Command-line entry points for the upgrade tools."""
