from __future__ import annotations

from .models import FinancialFigures, FinancialPeriod


def figures_from_period(period: FinancialPeriod) -> FinancialFigures:
    """Evaluator figures for a stored period.

    Adjusted EBITDA wins over reported EBITDA whenever it was supplied, even
    when it is zero. Missing figures stay None.
    """
    adjusted = period["ebitda_adjusted"]
    ebitda = adjusted if adjusted is not None else period["ebitda_reported"]
    return FinancialFigures(
        revenue=period["revenue"],
        ebitda=ebitda,
        total_debt=period["total_debt"],
        interest_expense=period["interest_expense"],
        fixed_charges=period["fixed_charges"],
        current_assets=period["current_assets"],
        current_liabilities=period["current_liabilities"],
        net_worth=period["net_worth"],
    )


def empty_figures() -> FinancialFigures:
    return FinancialFigures(
        revenue=None,
        ebitda=None,
        total_debt=None,
        interest_expense=None,
        fixed_charges=None,
        current_assets=None,
        current_liabilities=None,
        net_worth=None,
    )


__all__ = ["empty_figures", "figures_from_period"]
