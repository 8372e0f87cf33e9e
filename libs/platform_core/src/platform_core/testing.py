"""Test doubles shared by the platform_core and service test suites."""

from __future__ import annotations

from platform_core.config import _test_hooks


class FakeEnv:
    """Dict-backed replacement for the config env hook."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def get(self, key: str) -> str | None:
        return self.values.get(key)


def make_fake_env() -> FakeEnv:
    """Install an empty FakeEnv as ``_test_hooks.get_env`` and return it.

    Callers restore the original hook (see the autouse fixture in conftest).
    """
    env = FakeEnv()
    _test_hooks.get_env = env.get
    return env


__all__ = ["FakeEnv", "make_fake_env"]
