"""Persistence — the generated artifact on disk."""
