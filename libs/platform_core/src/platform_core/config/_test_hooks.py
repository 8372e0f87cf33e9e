"""Test hooks for platform_core config. Tests replace ``get_env`` with a fake."""

from __future__ import annotations

import os
from collections.abc import Callable


def _default_get_env(key: str) -> str | None:
    return os.getenv(key)


# Hook for environment variable access. Tests can override to provide fake values.
get_env: Callable[[str], str | None] = _default_get_env
