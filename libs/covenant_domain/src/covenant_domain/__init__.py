from __future__ import annotations

from .alerts import build_alert
from .decode import (
    decode_alert,
    decode_covenant,
    decode_covenant_test,
    decode_definition,
    decode_figures,
    decode_financial_period,
    decode_test_result,
)
from .encode import (
    encode_alert,
    encode_covenant,
    encode_covenant_test,
    encode_definition,
    encode_failure,
    encode_figures,
    encode_financial_period,
    encode_loan_test_run,
    encode_outcome,
    encode_risk_score,
    encode_test_result,
)
from .errors import (
    CovenantErrorKind,
    CovenantEvaluationError,
    DivisionByZeroError,
    InvalidThresholdError,
    MissingInputError,
    UnsupportedCovenantTypeError,
)
from .evaluator import calculate_value, evaluate, evaluate_definition, exact_value
from .figures import empty_figures, figures_from_period
from .formula_parser import FormulaParseError, evaluate_formula, evaluate_formula_exact
from .models import (
    SCALE,
    Alert,
    AlertId,
    ComplianceStatus,
    Covenant,
    CovenantDefinition,
    CovenantId,
    CovenantOperator,
    CovenantTest,
    CovenantTestId,
    CovenantTestResult,
    CovenantType,
    FinancialFigures,
    FinancialPeriod,
    FinancialPeriodId,
    LoanId,
    ThresholdStepDown,
)
from .risk import (
    RiskFactor,
    RiskFactors,
    RiskLevel,
    RiskScore,
    assess_loan_risk,
    calculate_risk_score,
    risk_factors_from_tests,
)
from .rules import WARNING_BAND_SCALED, assess, classify_status, compute_headroom
from .runner import (
    CovenantFailure,
    CovenantOutcome,
    LoanTestRun,
    record_manual_test,
    run_loan_tests,
)
from .thresholds import resolve_threshold

__all__ = [
    "SCALE",
    "WARNING_BAND_SCALED",
    "Alert",
    "AlertId",
    "ComplianceStatus",
    "Covenant",
    "CovenantDefinition",
    "CovenantErrorKind",
    "CovenantEvaluationError",
    "CovenantFailure",
    "CovenantId",
    "CovenantOperator",
    "CovenantOutcome",
    "CovenantTest",
    "CovenantTestId",
    "CovenantTestResult",
    "CovenantType",
    "DivisionByZeroError",
    "FinancialFigures",
    "FinancialPeriod",
    "FinancialPeriodId",
    "FormulaParseError",
    "InvalidThresholdError",
    "LoanId",
    "LoanTestRun",
    "MissingInputError",
    "RiskFactor",
    "RiskFactors",
    "RiskLevel",
    "RiskScore",
    "ThresholdStepDown",
    "UnsupportedCovenantTypeError",
    "assess",
    "assess_loan_risk",
    "build_alert",
    "calculate_risk_score",
    "calculate_value",
    "classify_status",
    "compute_headroom",
    "decode_alert",
    "decode_covenant",
    "decode_covenant_test",
    "decode_definition",
    "decode_figures",
    "decode_financial_period",
    "decode_test_result",
    "empty_figures",
    "encode_alert",
    "encode_covenant",
    "encode_covenant_test",
    "encode_definition",
    "encode_failure",
    "encode_figures",
    "encode_financial_period",
    "encode_loan_test_run",
    "encode_outcome",
    "encode_risk_score",
    "encode_test_result",
    "evaluate",
    "evaluate_definition",
    "evaluate_formula",
    "evaluate_formula_exact",
    "exact_value",
    "figures_from_period",
    "record_manual_test",
    "resolve_threshold",
    "risk_factors_from_tests",
    "run_loan_tests",
]
