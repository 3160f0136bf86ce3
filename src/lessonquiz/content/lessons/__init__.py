"""Bundled lesson documents."""
