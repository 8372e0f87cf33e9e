"""Evaluation failures for one covenant against one set of figures.

All of them are raised synchronously and never retried: the inputs are
deterministic, so a retry would fail the same way.
"""

from __future__ import annotations

from typing import Literal

CovenantErrorKind = Literal[
    "missing_input",
    "invalid_threshold",
    "division_by_zero",
    "unsupported_type",
    "invalid_formula",
]


class CovenantEvaluationError(Exception):
    """Base class; ``kind`` names the failure for reports and logs."""

    kind: CovenantErrorKind


class MissingInputError(CovenantEvaluationError):
    kind: CovenantErrorKind = "missing_input"

    def __init__(self, field: str, covenant_type: str) -> None:
        super().__init__(f"{covenant_type} covenant requires {field}, which was not supplied")
        self.field = field
        self.covenant_type = covenant_type


class InvalidThresholdError(CovenantEvaluationError):
    kind: CovenantErrorKind = "invalid_threshold"

    def __init__(self, threshold_scaled: int) -> None:
        super().__init__(
            f"threshold must be positive to compute headroom, got {threshold_scaled} (scaled)"
        )
        self.threshold_scaled = threshold_scaled


class DivisionByZeroError(CovenantEvaluationError):
    kind: CovenantErrorKind = "division_by_zero"

    def __init__(self, denominator: str, covenant_type: str) -> None:
        super().__init__(f"{covenant_type} covenant cannot be computed: {denominator} is zero")
        self.denominator = denominator
        self.covenant_type = covenant_type


class UnsupportedCovenantTypeError(CovenantEvaluationError):
    kind: CovenantErrorKind = "unsupported_type"

    def __init__(self, covenant_type: str) -> None:
        super().__init__(f"no calculation is defined for covenant type {covenant_type}")
        self.covenant_type = covenant_type


__all__ = [
    "CovenantErrorKind",
    "CovenantEvaluationError",
    "DivisionByZeroError",
    "InvalidThresholdError",
    "MissingInputError",
    "UnsupportedCovenantTypeError",
]
