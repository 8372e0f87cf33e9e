"""Shared test fixtures for platform_core tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from platform_core.config import _test_hooks
from platform_core.testing import FakeEnv, make_fake_env


@pytest.fixture(autouse=True)
def _restore_config_hooks() -> Generator[None, None, None]:
    """Restore config hooks after each test."""
    original_get_env = _test_hooks.get_env
    yield
    _test_hooks.get_env = original_get_env


def _fake_env() -> FakeEnv:
    return make_fake_env()


fake_env = pytest.fixture(_fake_env)
