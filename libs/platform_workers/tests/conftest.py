"""Shared fixtures for platform_workers tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from platform_workers.testing import hooks


@pytest.fixture(autouse=True)
def _reset_hooks() -> Generator[None, None, None]:
    hooks.reset()
    yield
    hooks.reset()
