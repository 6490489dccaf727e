"""
Tests for ucas/engine/cost_engine.py.

What we test
------------
monthly_quantity() / current_cost():
  - hour and slot scale by 720; GB-month, GB and request are taken as-is.
  - Unknown units yield 0 and log a warning.
  - None inputs yield 0.

risk_score():
  - None metrics -> 0.5.
  - Always within [0, 1].
  - Higher idle ratio lowers risk; stable patterns lower risk.
  - Base level ordering low < medium < high.

priority_score():
  - Increases with savings, decreases with risk and difficulty.

commitment_savings() / storage_lifecycle_savings():
  - Follow the documented formulas and never go negative.

finalize_savings():
  - Cost floor, savings floor, cap, and new_cost arithmetic.
"""

from __future__ import annotations

import logging

import pytest

from ucas.engine.cost_engine import (
    HOURS_PER_MONTH,
    commitment_savings,
    current_cost,
    finalize_savings,
    monthly_quantity,
    offhours_savings,
    priority_score,
    rightsizing_savings_rate,
    risk_score,
    storage_lifecycle_savings,
)
from ucas.models.resource import UsageMetrics


# ── Helpers ────────────────────────────────────────────────────────────────────

def _metrics(
    idle_ratio: float | None = 0.6,
    p99: float | None = 80.0,
    schedule_pattern: str | None = "weekdays",
) -> UsageMetrics:
    return UsageMetrics(
        avg=30.0, p95=60.0, p99=p99, idle_ratio=idle_ratio,
        schedule_pattern=schedule_pattern, uptime_days=365,
    )


# ── Unit conversion ────────────────────────────────────────────────────────────

class TestMonthlyQuantity:
    def test_hours_per_month_constant(self):
        assert HOURS_PER_MONTH == 720.0

    @pytest.mark.parametrize("unit", ["hour", "slot"])
    def test_hourly_units_scale_to_month(self, unit):
        assert monthly_quantity(2.0, unit) == pytest.approx(1440.0)

    @pytest.mark.parametrize("unit", ["GB-month", "GB", "request"])
    def test_volume_units_taken_as_is(self, unit):
        assert monthly_quantity(100.0, unit) == pytest.approx(100.0)

    def test_unknown_unit_is_zero_and_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="ucas.engine.cost_engine"):
            assert monthly_quantity(5.0, "fortnight") == 0.0
        assert "fortnight" in caplog.text

    def test_none_quantity_is_zero(self):
        assert monthly_quantity(None, "hour") == 0.0


class TestCurrentCost:
    def test_hourly_price(self):
        assert current_cost(0.0416, 1.0, "hour") == pytest.approx(29.952)

    def test_gb_month_price(self):
        assert current_cost(0.023, 100.0, "GB-month") == pytest.approx(2.3)

    def test_none_price_is_zero(self):
        assert current_cost(None, 1.0, "hour") == 0.0


# ── Risk ───────────────────────────────────────────────────────────────────────

class TestRiskScore:
    def test_none_metrics_is_neutral(self):
        assert risk_score(None, "low") == 0.5

    def test_default_estimate_medium(self):
        # 0.4*0.3 + 0.3*(1-0.6) + 0.2*0.8 + 0.1*0
        assert risk_score(_metrics(), "medium") == pytest.approx(0.40)

    def test_default_estimate_low(self):
        assert risk_score(_metrics(), "low") == pytest.approx(0.32)

    def test_base_level_ordering(self):
        m = _metrics()
        assert risk_score(m, "low") < risk_score(m, "medium") < risk_score(m, "high")

    def test_unknown_base_level_treated_as_medium(self):
        m = _metrics()
        assert risk_score(m, "extreme") == pytest.approx(risk_score(m, "medium"))

    def test_higher_idle_ratio_lowers_risk(self):
        assert risk_score(_metrics(idle_ratio=0.9), "medium") < risk_score(
            _metrics(idle_ratio=0.1), "medium"
        )

    def test_stable_pattern_lowers_risk(self):
        stable = risk_score(_metrics(schedule_pattern="weekdays"), "medium")
        always_on = risk_score(_metrics(schedule_pattern="24/7"), "medium")
        irregular = risk_score(_metrics(schedule_pattern="irregular"), "medium")
        assert stable < always_on < irregular

    def test_bounded(self):
        worst = UsageMetrics(idle_ratio=0.0, p99=250.0, schedule_pattern="chaos")
        best = UsageMetrics(idle_ratio=1.0, p99=0.0, schedule_pattern="nightly")
        assert 0.0 <= risk_score(best, "low") <= risk_score(worst, "high") <= 1.0


# ── Priority ───────────────────────────────────────────────────────────────────

class TestPriorityScore:
    def test_formula(self):
        assert priority_score(10_000.0, 0.4, 2) == pytest.approx(3_000.0)

    def test_monotone_in_savings(self):
        assert priority_score(2_000.0, 0.3, 2) > priority_score(1_000.0, 0.3, 2)

    def test_decreasing_in_risk(self):
        assert priority_score(1_000.0, 0.2, 2) > priority_score(1_000.0, 0.6, 2)

    def test_decreasing_in_difficulty(self):
        assert priority_score(1_000.0, 0.3, 1) > priority_score(1_000.0, 0.3, 3)

    def test_none_inputs(self):
        assert priority_score(None, 0.3, 1) == 0.0


# ── Savings formulas ───────────────────────────────────────────────────────────

class TestSavingsFormulas:
    def test_commitment_savings(self):
        # (0.1 - 0.05) * 0.7 * 720
        assert commitment_savings(0.1, 0.05, 0.7, 1.0, "hour") == pytest.approx(25.2)

    def test_commitment_savings_never_negative(self):
        assert commitment_savings(0.05, 0.1, 0.7, 1.0, "hour") == 0.0

    def test_storage_lifecycle_savings(self):
        assert storage_lifecycle_savings(0.023, 0.0115, 100.0) == pytest.approx(1.15)

    def test_storage_lifecycle_never_negative(self):
        assert storage_lifecycle_savings(0.01, 0.02, 100.0) == 0.0

    def test_offhours_savings(self):
        assert offhours_savings(100_000.0, 275.0) == pytest.approx(38_194.444, rel=1e-6)

    @pytest.mark.parametrize(
        "avg, rate",
        [(39.0, 0.31), (30.0, 0.40), (20.0, 0.50), (5.0, 0.50)],
    )
    def test_rightsizing_rate(self, avg, rate):
        assert rightsizing_savings_rate(avg) == pytest.approx(rate)


class TestFinalizeSavings:
    def test_cost_floor_applies(self):
        result = finalize_savings(29.95, 11.4, 0.5, 100_000.0, 10_000.0)
        assert result.current_cost == 100_000.0
        assert result.savings == 10_000.0
        assert result.new_cost == 90_000.0

    def test_cap_applies_after_floor(self):
        result = finalize_savings(1_000.0, 10.0, 0.5, 0.0, 10_000.0)
        assert result.savings == pytest.approx(500.0)

    def test_new_cost_is_difference(self):
        result = finalize_savings(200_000.0, 55_000.0, 0.7, 100_000.0, 10_000.0)
        assert result.new_cost == pytest.approx(result.current_cost - result.savings)

    def test_zero_everything(self):
        result = finalize_savings(0.0, 0.0, 0.5, 0.0, 0.0)
        assert result == (0.0, 0.0, 0.0)
