"""Tests for seeding the demo portfolio."""

from __future__ import annotations

from covenant_persistence.testing import InMemoryConnection

from covenant_monitor_api.seeding import DEMO_LOANS, seed_demo
from covenant_monitor_api.testing import ServiceFakes


class TestDemoPortfolio:
    def test_four_loans_eleven_covenants(self) -> None:
        assert len(DEMO_LOANS) == 4
        assert sum(len(loan["covenants"]) for loan in DEMO_LOANS) == 11

    def test_thresholds_are_positive(self) -> None:
        for loan in DEMO_LOANS:
            for covenant in loan["covenants"]:
                assert covenant["threshold_scaled"] > 0


class TestSeedDemo:
    def test_seeds_without_testing(self, service_fakes: ServiceFakes) -> None:
        conn = InMemoryConnection(service_fakes.store)
        result = seed_demo(conn)
        assert result == {
            "loan_ids": ["id-1", "id-5", "id-10", "id-15"],
            "covenants_created": 11,
            "periods_created": 4,
            "tests_recorded": 0,
            "alerts_created": 0,
        }
        assert len(service_fakes.store.covenants) == 11
        assert len(service_fakes.store.periods) == 4
        assert service_fakes.store.tests == []
        assert conn.commits > 0

    def test_seeded_figures_are_scaled(self, service_fakes: ServiceFakes) -> None:
        seed_demo(InMemoryConnection(service_fakes.store))
        period = service_fakes.store.periods["id-4"]
        assert period["loan_id"] == {"value": "id-1"}
        assert period["ebitda_reported"] == 12_450_000_000_000
        assert period["total_debt"] == 28_500_000_000_000
        assert period["ebitda_adjusted"] is None
        covenant = service_fakes.store.covenants["id-2"]
        assert covenant["grace_period_days"] == 30
        assert covenant["testing_frequency"] == "quarterly"

    def test_run_tests_records_every_covenant(self, service_fakes: ServiceFakes) -> None:
        result = seed_demo(InMemoryConnection(service_fakes.store), run_tests=True)
        assert result["tests_recorded"] == 11
        assert result["alerts_created"] == 5
        statuses = sorted(t["status"] for t in service_fakes.store.tests)
        assert statuses.count("compliant") == 6
        assert statuses.count("warning") == 4
        assert statuses.count("breach") == 1
        severities = sorted(a["severity"] for a in service_fakes.store.alerts)
        assert severities == ["critical", "warning", "warning", "warning", "warning"]

    def test_techflow_leverage_value(self, service_fakes: ServiceFakes) -> None:
        seed_demo(InMemoryConnection(service_fakes.store), DEMO_LOANS[:1], run_tests=True)
        leverage = [
            t for t in service_fakes.store.tests if t["covenant_id"] == {"value": "id-2"}
        ]
        assert len(leverage) == 1
        assert leverage[0]["calculated_value_scaled"] == 2_289_156
        assert leverage[0]["headroom_percentage_scaled"] == 42_771_084
        assert leverage[0]["status"] == "compliant"
