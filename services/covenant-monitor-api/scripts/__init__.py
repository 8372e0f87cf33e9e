"""Operational scripts for covenant-monitor-api."""
