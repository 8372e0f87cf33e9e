"""Background job testing the covenants of many loans."""

from __future__ import annotations

from covenant_domain import LoanId, encode_failure
from platform_core.json_utils import JSONTypeError, JSONValue, load_json_str, narrow_json_to_list
from platform_core.logging import get_logger

from covenant_monitor_api.core.compliance import (
    LoanNotTestableError,
    RepositoryProvider,
    run_compliance_tests,
)

_log = get_logger(__name__)


def _decode_loan_ids(loan_ids_json: str) -> list[str]:
    raw_ids = narrow_json_to_list(load_json_str(loan_ids_json))
    loan_ids: list[str] = []
    for raw_id in raw_ids:
        if not isinstance(raw_id, str):
            raise JSONTypeError("Each loan_id must be a string")
        loan_ids.append(raw_id)
    return loan_ids


def run_batch_tests(loan_ids_json: str, repo_provider: RepositoryProvider) -> dict[str, JSONValue]:
    """Test every listed loan in turn.

    A loan with no covenants or no financial period is reported under
    ``loans_skipped`` and the batch carries on. Covenants that cannot be
    evaluated are reported under ``failures`` with their loan id.

    Args:
        loan_ids_json: JSON array of loan id strings
        repo_provider: Provider for repository instances

    Returns:
        Job result with per-batch counts, skipped loans and failures.
    """
    loan_ids = _decode_loan_ids(loan_ids_json)
    loans_tested = 0
    tests_run = 0
    alerts_created = 0
    skipped: list[JSONValue] = []
    failures: list[JSONValue] = []

    for loan_id in loan_ids:
        try:
            run = run_compliance_tests(repo_provider, LoanId(value=loan_id))
        except LoanNotTestableError as exc:
            _log.warning(
                "loan_skipped",
                extra={"loan_id": loan_id, "error_kind": exc.reason},
            )
            skipped.append({"loan_id": loan_id, "reason": exc.reason})
            continue
        loans_tested += 1
        tests_run += len(run["outcomes"])
        alerts_created += sum(1 for o in run["outcomes"] if o["alert"] is not None)
        for failure in run["failures"]:
            encoded = encode_failure(failure)
            encoded["loan_id"] = loan_id
            failures.append(encoded)

    _log.info(
        "batch_tests_completed",
        extra={
            "loans_tested": loans_tested,
            "tests_run": tests_run,
            "alerts_created": alerts_created,
            "failures": len(failures),
        },
    )
    return {
        "status": "complete",
        "loans_tested": loans_tested,
        "tests_run": tests_run,
        "alerts_created": alerts_created,
        "loans_skipped": skipped,
        "failures": failures,
    }


def process_batch_tests(loan_ids_json: str) -> dict[str, JSONValue]:
    """RQ job entry point.

    Loads the ServiceContainer from environment variables and passes it as
    the provider to run_batch_tests.
    """
    from covenant_monitor_api.core.config import settings_from_env
    from covenant_monitor_api.core.container import ServiceContainer

    container = ServiceContainer.from_settings(settings_from_env())
    try:
        return run_batch_tests(loan_ids_json, container)
    finally:
        container.close()


__all__ = ["process_batch_tests", "run_batch_tests"]
