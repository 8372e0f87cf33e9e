"""Shared fixtures for covenant_persistence tests."""

from __future__ import annotations

import pytest

from covenant_persistence.testing import InMemoryConnection, InMemoryStore


def _store() -> InMemoryStore:
    return InMemoryStore()


def _conn(store: InMemoryStore) -> InMemoryConnection:
    return InMemoryConnection(store)


store = pytest.fixture(_store)
conn = pytest.fixture(_conn)
