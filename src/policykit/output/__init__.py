"""Presentation helpers. Read-only consumers of results and values."""
