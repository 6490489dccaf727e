"""
Cost engine: stateless arithmetic shared by every scenario generator.

All functions are pure — no I/O, no shared state.

Formulas
--------
monthly_quantity(q, unit):
    hour, slot              → q × HOURS_PER_MONTH  (24 × 30 = 720)
    GB-month, GB, request   → q
    anything else           → 0 (logged)

current_cost(price, q, unit)       = price × monthly_quantity(q, unit)
commitment_savings(od, cp, c, q, u)= (od − cp) × c × monthly_quantity(q, u)
storage_lifecycle_savings(p, p', g)= (p − p') × g
offhours_savings(cost, off_hours)  = off_hours / HOURS_PER_MONTH × cost
rightsizing_savings_rate(avg)      = min(0.5, 0.3 + (40 − avg) / 100)

risk_score(metrics, base_level)  (0–1, higher = riskier)
    =   0.4 × base_level        (low 0.1 | medium 0.3 | high 0.5)
      + 0.3 × (1 − idle_ratio)  (always busy → stopping hurts)
      + 0.2 × p99 / 100         (peak pressure)
      + 0.1 × pattern_instability

priority_score(savings, risk, difficulty) = savings × (1 − risk) / difficulty
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from ucas.models.resource import UsageMetrics
from ucas.taxonomy.action_taxonomy import PricingUnit, RiskLevel

logger = logging.getLogger(__name__)

HOURS_PER_MONTH: float = 24.0 * 30.0

_UNIT_MONTHLY_FACTOR: dict[str, float] = {
    PricingUnit.HOUR:     HOURS_PER_MONTH,
    PricingUnit.SLOT:     HOURS_PER_MONTH,
    PricingUnit.GB_MONTH: 1.0,
    PricingUnit.GB:       1.0,
    PricingUnit.REQUEST:  1.0,
}

_BASE_RISK: dict[str, float] = {
    RiskLevel.LOW:    0.1,
    RiskLevel.MEDIUM: 0.3,
    RiskLevel.HIGH:   0.5,
}

# 0 = predictable schedule, 1 = no usable pattern
_PATTERN_INSTABILITY: dict[str, float] = {
    "weekdays":       0.0,
    "business-hours": 0.0,
    "nightly":        0.0,
    "weekends":       0.0,
    "24/7":           0.5,
}

_DEFAULT_RISK = 0.5


class FinalizedCost(NamedTuple):
    """Floored / capped cost triple produced by ``finalize_savings``."""

    current_cost: float
    savings: float
    new_cost: float


def monthly_quantity(quantity: float | None, unit: str | None) -> float:
    """Convert a per-unit quantity into a monthly quantity."""
    if quantity is None:
        return 0.0
    factor = _UNIT_MONTHLY_FACTOR.get(unit or "")
    if factor is None:
        logger.warning("Unknown pricing unit %r; treating monthly quantity as 0.", unit)
        return 0.0
    return quantity * factor


def current_cost(unit_price: float | None, quantity: float | None, unit: str | None) -> float:
    """Baseline monthly cost for ``quantity`` units at ``unit_price``."""
    if unit_price is None or quantity is None:
        return 0.0
    return unit_price * monthly_quantity(quantity, unit)


def commitment_savings(
    on_demand_price:   float | None,
    commitment_price:  float | None,
    coverage_fraction: float | None,
    quantity:          float | None,
    unit:              str | None,
) -> float:
    """Monthly savings from covering ``coverage_fraction`` of usage with a commitment."""
    if None in (on_demand_price, commitment_price, coverage_fraction, quantity):
        return 0.0
    delta = on_demand_price - commitment_price
    return max(0.0, delta * coverage_fraction * monthly_quantity(quantity, unit))


def storage_lifecycle_savings(
    current_tier_price: float | None,
    target_tier_price:  float | None,
    size_gb:            float | None,
) -> float:
    """Monthly savings from moving ``size_gb`` to a cheaper tier."""
    if current_tier_price is None or target_tier_price is None or size_gb is None:
        return 0.0
    return max(0.0, (current_tier_price - target_tier_price) * size_gb)


def offhours_savings(monthly_cost: float, monthly_off_hours: float) -> float:
    """Share of ``monthly_cost`` avoided by being stopped ``monthly_off_hours``."""
    return max(0.0, monthly_off_hours / HOURS_PER_MONTH * monthly_cost)


def rightsizing_savings_rate(avg_utilization: float) -> float:
    """Fraction of cost saved by stepping down one size class."""
    return min(0.5, 0.3 + (40.0 - avg_utilization) / 100.0)


def risk_score(metrics: UsageMetrics | None, base_level: str | None) -> float:
    """Blend the qualitative base level with observed usage into a 0–1 risk."""
    if metrics is None:
        return _DEFAULT_RISK

    base = _BASE_RISK.get((base_level or "").lower(), _BASE_RISK[RiskLevel.MEDIUM])
    risk = base * 0.4

    if metrics.idle_ratio is not None:
        risk += (1.0 - metrics.idle_ratio) * 0.3

    if metrics.p99 is not None:
        risk += _clamp(metrics.p99 / 100.0, 0.0, 1.0) * 0.2

    pattern = (metrics.schedule_pattern or "").lower()
    risk += _PATTERN_INSTABILITY.get(pattern, 1.0) * 0.1

    return _clamp(risk, 0.0, 1.0)


def priority_score(savings: float | None, risk: float | None, difficulty: int | None) -> float:
    """Savings weighted by confidence and divided by implementation difficulty."""
    if savings is None or risk is None:
        return 0.0
    divisor = float(difficulty) if difficulty and difficulty > 0 else 1.0
    return savings * (1.0 - risk) / divisor


def finalize_savings(
    monthly_cost:  float,
    raw_savings:   float,
    cap_fraction:  float,
    min_cost:      float,
    min_savings:   float,
) -> FinalizedCost:
    """Apply the cost floor, savings floor and savings cap.

    Order matters: the cost floor is applied first so the cap is computed on
    the floored cost, and the cap is applied after the savings floor so a
    floor can never push savings above the cap.
    """
    cost = max(monthly_cost, min_cost)
    savings = max(raw_savings, min_savings)
    savings = min(savings, cost * cap_fraction)
    savings = max(0.0, savings)
    return FinalizedCost(
        current_cost=cost,
        savings=savings,
        new_cost=max(0.0, cost - savings),
    )


# ── Helper ────────────────────────────────────────────────────────────────────

def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
