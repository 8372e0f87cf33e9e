"""Covenant monitor HTTP API and batch testing worker."""
