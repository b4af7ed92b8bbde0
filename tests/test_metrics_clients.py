"""Tests for new-client conversion and retention metrics."""

import pytest

from studio_api.fallbacks import NEW_CLIENTS_FALLBACK
from studio_core.data import load_new_clients
from studio_core.filters import FilterSpec
from studio_core.metrics_clients import compute_new_clients, new_client_metrics


class TestNewClientMetrics:
    def test_rates_and_averages(self):
        df = load_new_clients(NEW_CLIENTS_FALLBACK)
        metrics = new_client_metrics(df)

        assert metrics["total_clients"] == 5
        assert metrics["converted_clients"] == 4
        assert metrics["retained_clients"] == 3
        assert metrics["conversion_rate"] == pytest.approx(80.0)
        assert metrics["retention_rate"] == pytest.approx(60.0)
        assert metrics["total_ltv"] == 39500.0
        assert metrics["avg_ltv"] == pytest.approx(7900.0)
        assert metrics["avg_conversion_span"] == pytest.approx((5 + 7 + 3 + 8) / 4)

    def test_breakdowns(self):
        df = load_new_clients(NEW_CLIENTS_FALLBACK)
        payload = compute_new_clients(FilterSpec(), {"filtered_new_clients": df})

        locations = payload["location_breakdown"]
        assert [loc["location"] for loc in locations] == [
            "Kwality House, Kemps Corner",
            "Supreme HQ, Bandra",
            "Kenkere House, Bengaluru",
        ]
        kwality = locations[0]
        assert kwality["clients"] == 2
        assert kwality["converted"] == 1
        assert kwality["conversion_rate"] == pytest.approx(50.0)
        assert kwality["avg_ltv"] == pytest.approx(7500.0)

        trainers = payload["trainer_breakdown"]
        assert [t["trainer"] for t in trainers] == ["Sarah Johnson", "Mike Wilson", "Lisa Davis"]
        assert trainers[1]["total_ltv"] == 20000.0

    def test_empty(self):
        payload = compute_new_clients(FilterSpec(), {})
        assert payload["metrics"]["total_clients"] == 0
        assert payload["metrics"]["conversion_rate"] == 0.0
        assert payload["location_breakdown"] == []
