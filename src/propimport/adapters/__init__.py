"""Adapters for external services and persistence."""
