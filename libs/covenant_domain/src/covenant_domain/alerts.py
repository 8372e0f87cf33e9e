from __future__ import annotations

from .models import SCALE, Alert, AlertId, Covenant, CovenantTest


def format_fixed(value_scaled: int, places: int) -> str:
    """Round half away from zero to ``places`` decimals: 2289156 -> "2.29"."""
    divisor = SCALE // (10**places)
    rounded = (abs(value_scaled) + divisor // 2) // divisor
    whole, frac = divmod(rounded, 10**places)
    text = f"{whole}.{frac:0{places}d}" if places > 0 else str(whole)
    return f"-{text}" if value_scaled < 0 and rounded != 0 else text


def format_plain(value_scaled: int) -> str:
    """Shortest exact decimal: 4000000 -> "4", 1250000 -> "1.25"."""
    whole, frac = divmod(abs(value_scaled), SCALE)
    text = str(whole) if frac == 0 else f"{whole}.{frac:06d}".rstrip("0")
    return f"-{text}" if value_scaled < 0 else text


def build_alert(covenant: Covenant, test: CovenantTest, alert_id: AlertId) -> Alert | None:
    """Alert for a breach (critical) or warning test; compliant tests raise none."""
    status = test["status"]
    if status == "compliant":
        return None

    name = covenant["name"]
    breach = status == "breach"
    comparator = "≤" if covenant["operator"] == "max" else "≥"
    percentage = format_fixed(abs(test["headroom_percentage_scaled"]), 1)
    message = (
        f"{name} is {'in breach' if breach else 'at warning level'} "
        f"with a calculated value of {format_fixed(test['calculated_value_scaled'], 2)}x "
        f"against a threshold of {comparator} {format_plain(test['threshold_at_test_scaled'])}x "
        f"({percentage}% {'over' if breach else 'headroom'})."
    )
    return Alert(
        id=alert_id,
        loan_id=test["loan_id"],
        covenant_id=test["covenant_id"],
        covenant_test_id=test["id"],
        severity="critical" if breach else "warning",
        title=f"{name} {'Breach' if breach else 'Warning'}",
        message=message,
        acknowledged=False,
    )


__all__ = ["build_alert", "format_fixed", "format_plain"]
