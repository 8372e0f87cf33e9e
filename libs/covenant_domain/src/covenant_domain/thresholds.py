from __future__ import annotations

from .models import Covenant


def resolve_threshold(covenant: Covenant, period_end_iso: str) -> int:
    """Threshold in force at ``period_end_iso``.

    The step-down with the latest ``effective_from_iso`` on or before the
    period end wins; with none in force the base threshold applies. Dates
    are extended YYYY-MM-DD (request parsing normalizes them), so they
    compare correctly as strings.
    """
    effective = covenant["threshold_scaled"]
    latest_from = ""
    for step in covenant["threshold_step_downs"]:
        starts = step["effective_from_iso"]
        if starts <= period_end_iso and starts >= latest_from:
            effective = step["threshold_scaled"]
            latest_from = starts
    return effective


__all__ = ["resolve_threshold"]
