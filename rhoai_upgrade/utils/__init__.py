"""Shared helpers for the upgrade tools."""
