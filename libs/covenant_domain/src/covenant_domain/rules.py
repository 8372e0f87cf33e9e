from __future__ import annotations

import math
from fractions import Fraction

from .errors import InvalidThresholdError
from .models import SCALE, ComplianceStatus, CovenantOperator, CovenantTestResult

# Headroom below 15% of the threshold is a warning; the band is a fixed
# business rule, not configuration.
WARNING_BAND_SCALED = 15 * SCALE


def compute_headroom(
    operator: CovenantOperator,
    threshold_scaled: int,
    calculated_value: int | Fraction,
) -> tuple[int, int]:
    """
    Return (headroom_absolute_scaled, headroom_percentage_scaled).

    For "max" headroom is threshold - value; for "min" it is value - threshold.
    The percentage is relative to the threshold, so a leverage of 3.0x
    against a 4.0x maximum is 25% headroom (25_000_000).

    ``calculated_value`` may be the exact ratio rather than its scaled
    floor. Both results are floors of the exact headroom, so they are
    negative whenever the exact value is past the threshold, however
    small the excess.

    Raises InvalidThresholdError when the threshold is zero or negative.
    """
    if threshold_scaled <= 0:
        raise InvalidThresholdError(threshold_scaled)

    if operator == "max":
        exact = threshold_scaled - calculated_value
    else:
        exact = calculated_value - threshold_scaled

    absolute = math.floor(exact)
    percentage = math.floor(Fraction(exact * 100 * SCALE, threshold_scaled))
    return absolute, percentage


def classify_status(headroom_percentage_scaled: int) -> ComplianceStatus:
    """breach below 0, warning from 0 up to (not including) 15%, else compliant."""
    if headroom_percentage_scaled < 0:
        return "breach"
    if headroom_percentage_scaled < WARNING_BAND_SCALED:
        return "warning"
    return "compliant"


def assess(
    operator: CovenantOperator,
    threshold_scaled: int,
    calculated_value: int | Fraction,
) -> CovenantTestResult:
    """Headroom and status for an already-calculated covenant value.

    The reported value is the scaled floor of ``calculated_value``; the
    status comes from the exact headroom.
    """
    absolute, percentage = compute_headroom(operator, threshold_scaled, calculated_value)
    return CovenantTestResult(
        calculated_value_scaled=math.floor(calculated_value),
        status=classify_status(percentage),
        headroom_absolute_scaled=absolute,
        headroom_percentage_scaled=percentage,
    )


__all__ = [
    "WARNING_BAND_SCALED",
    "assess",
    "classify_status",
    "compute_headroom",
]
