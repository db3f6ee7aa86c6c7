"""Shared helpers for the research feed."""
