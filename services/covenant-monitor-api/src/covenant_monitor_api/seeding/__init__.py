"""Demo data for covenant-monitor-api.

Usage:
    from covenant_monitor_api.seeding import seed_demo

    result = seed_demo(conn, run_tests=True)
"""

from __future__ import annotations

from .demo import DEMO_LOANS, CovenantSeed, LoanSeed, PeriodSeed
from .runner import SeedResult, seed_demo

__all__ = [
    "DEMO_LOANS",
    "CovenantSeed",
    "LoanSeed",
    "PeriodSeed",
    "SeedResult",
    "seed_demo",
]
