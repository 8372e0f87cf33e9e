"""CLI entry point for seeding the covenant-monitor-api database.

Usage:
    python -m scripts.seed
    python -m scripts.seed --run-tests --verbose
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import Protocol

from covenant_persistence import ensure_schema

from covenant_monitor_api.core import _test_hooks as core_hooks
from covenant_monitor_api.seeding import SeedResult, seed_demo


class WriteFunc(Protocol):
    def __call__(self, text: str) -> int: ...


class GetEnvFunc(Protocol):
    def __call__(self, key: str) -> str | None: ...


def _default_get_env(key: str) -> str | None:
    from platform_core.config._test_hooks import get_env as platform_get_env

    return platform_get_env(key)


def _default_write(text: str) -> int:
    written: int = sys.stdout.write(text)
    return written


# Hooks for testing
get_env: GetEnvFunc = _default_get_env
write: WriteFunc = _default_write


def _get_database_url() -> str:
    """Get database URL from environment.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
    """
    url = get_env("DATABASE_URL")
    if url is None:
        raise RuntimeError("DATABASE_URL environment variable is required")
    return url


def _print_result(result: SeedResult, verbose: bool) -> None:
    write("Seeded demo portfolio:\n")
    write(f"  Loans: {len(result['loan_ids'])}\n")
    write(f"  Covenants: {result['covenants_created']}\n")
    write(f"  Financial periods: {result['periods_created']}\n")
    write(f"  Tests recorded: {result['tests_recorded']}\n")
    write(f"  Alerts created: {result['alerts_created']}\n")
    if verbose:
        for loan_id in result["loan_ids"]:
            write(f"  loan {loan_id}\n")


def main(argv: Sequence[str] | None = None) -> int:
    """Seed the demo portfolio. Returns the process exit code."""
    args = list(argv) if argv is not None else list(sys.argv[1:])
    verbose = "--verbose" in args or "-v" in args
    run_tests = "--run-tests" in args

    conn = core_hooks.connection_factory(_get_database_url())
    try:
        ensure_schema(conn)
        result = seed_demo(conn, run_tests=run_tests)
    finally:
        conn.close()
    _print_result(result, verbose)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(None))
