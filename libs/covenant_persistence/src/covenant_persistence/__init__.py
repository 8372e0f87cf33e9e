"""PostgreSQL repository layer for covenant monitoring with Protocol-based psycopg."""

from __future__ import annotations

from .postgres import (
    PostgresAlertRepository,
    PostgresCovenantRepository,
    PostgresCovenantTestRepository,
    PostgresFinancialPeriodRepository,
    ensure_schema,
)
from .protocols import (
    ConnectCallable,
    ConnectionProtocol,
    CursorProtocol,
    connect,
    load_unique_violation,
)
from .repositories import (
    AlertRepository,
    CovenantRepository,
    CovenantTestRepository,
    DuplicatePeriodError,
    FinancialPeriodRepository,
)

__all__ = [
    "AlertRepository",
    "ConnectCallable",
    "ConnectionProtocol",
    "CovenantRepository",
    "CovenantTestRepository",
    "CursorProtocol",
    "DuplicatePeriodError",
    "FinancialPeriodRepository",
    "PostgresAlertRepository",
    "PostgresCovenantRepository",
    "PostgresCovenantTestRepository",
    "PostgresFinancialPeriodRepository",
    "connect",
    "ensure_schema",
    "load_unique_violation",
]
