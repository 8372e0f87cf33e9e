"""Shared ambient stack for the covenant monitor: JSON, logging, errors, config."""
