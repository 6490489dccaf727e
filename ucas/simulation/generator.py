"""
Scenario generator: one simulation function per ``ActionType``.

Every function has the same shape::

    fn(facts: ResourceFacts, params: ScenarioParams, limits: SimulationConfig)
        -> list[SimulationResult]

and is registered in ``SCENARIO_GENERATORS``.  The table is exhaustive over
``ActionType``; adding a member without a generator breaks
``tests/test_taxonomy/test_action_taxonomy.py``.

Per variant
-----------
offhours     1 result   weekday stop/start window; savings capped at 50 %
commitment   3 results  coverage 50 / 70 / 90 %; capped at 70 %;
                        none when the pricing is not commitment-eligible
storage      3 results  retention 30 / 60 / 90 days; capped at 50 %
rightsizing  0–1 result only when avg utilization < 40 %; capped at 50 %
cleanup      0 results  reserved

Every branch floors the baseline cost to ``limits.min_monthly_cost``, floors
savings to ``limits.min_monthly_savings`` and caps savings as a fraction of
the floored cost (``cost_engine.finalize_savings``).

``ScenarioGenerator.generate`` fetches pricing and metrics per resource and
isolates failures: a resource whose lookup or arithmetic raises is logged and
skipped, the batch continues.
"""

from __future__ import annotations

import logging
from typing import Callable, NamedTuple, Sequence

from ucas.config import SimulationConfig
from ucas.engine import cost_engine
from ucas.models.resource import PricingInfo, ResourceInfo, UsageMetrics
from ucas.models.scenario import ScenarioParams, SimulationResult, default_params
from ucas.providers.base import MetricsProvider, PricingProvider
from ucas.taxonomy.action_taxonomy import ActionType, DifficultyTier, RiskLevel
from ucas.utils.logging import context_logger
from ucas.utils.time_utils import daily_off_hours

logger = logging.getLogger(__name__)

# ── Variant constants ─────────────────────────────────────────────────────────

OFFHOURS_SAVINGS_CAP = 0.5
COMMITMENT_SAVINGS_CAP = 0.7
STORAGE_SAVINGS_CAP = 0.5
RIGHTSIZING_SAVINGS_CAP = 0.5

COMMITMENT_COVERAGE_LEVELS: tuple[float, ...] = (0.5, 0.7, 0.9)
COMMITMENT_PRICE_RATIO = 0.5

STORAGE_RETENTION_DAYS: tuple[int, ...] = (30, 60, 90)
STORAGE_TARGET_PRICE_RATIO = 0.5
STORAGE_RISK = 0.2
STORAGE_CONFIDENCE = 0.8

RIGHTSIZING_AVG_THRESHOLD = 40.0
RIGHTSIZING_MISSING_AVG = 50.0
RIGHTSIZING_RISK = 0.3

# One unit (instance-hour, GB-month, …) billed for the whole month.
BASELINE_QUANTITY = 1.0


class ResourceFacts(NamedTuple):
    """Collaborator facts for one resource, gathered before simulating."""

    resource: ResourceInfo
    pricing: PricingInfo
    metrics: UsageMetrics


ScenarioFn = Callable[[ResourceFacts, ScenarioParams, SimulationConfig], list[SimulationResult]]


# ── Off-hours ─────────────────────────────────────────────────────────────────


def should_exclude_from_offhours(resource: ResourceInfo) -> bool:
    """True when the resource carries an ``owner`` tag with an empty value.

    A resource without any ``owner`` tag is *not* excluded.
    """
    return "owner" in resource.tags and resource.tags["owner"] == ""


def _simulate_offhours(
    facts: ResourceFacts, params: ScenarioParams, limits: SimulationConfig
) -> list[SimulationResult]:
    resource, pricing, metrics = facts
    if should_exclude_from_offhours(resource):
        logger.debug("Resource %s excluded from off-hours (empty owner tag).", resource.id)
        return []

    off_hours_per_day = daily_off_hours(
        params.stop_at, params.start_at, default=limits.default_daily_off_hours
    )
    monthly_off_hours = off_hours_per_day * limits.weekday_days_per_month

    baseline = cost_engine.current_cost(pricing.unit_price, BASELINE_QUANTITY, pricing.unit)
    floored = max(baseline, limits.min_monthly_cost)
    raw = cost_engine.offhours_savings(floored, monthly_off_hours)
    cost = cost_engine.finalize_savings(
        baseline, raw, OFFHOURS_SAVINGS_CAP, limits.min_monthly_cost, limits.min_monthly_savings
    )

    risk = cost_engine.risk_score(metrics, RiskLevel.MEDIUM)
    description = (
        f"Stop on weekdays from {params.stop_at} to {params.start_at} to save about "
        f"{_yearly(cost.savings):,.0f} {limits.currency} per year."
    )
    return [
        _result(
            name=f"Off-hours auto-stop: {resource.id}",
            cost=cost,
            risk=risk,
            confidence=1.0 - risk,
            difficulty=DifficultyTier.MODERATE,
            description=description,
            action=ActionType.OFFHOURS,
            resource_id=resource.id,
        )
    ]


# ── Commitment ────────────────────────────────────────────────────────────────


def _simulate_commitment(
    facts: ResourceFacts, params: ScenarioParams, limits: SimulationConfig
) -> list[SimulationResult]:
    resource, pricing, metrics = facts
    if not pricing.commitment_applicable:
        logger.debug("Resource %s has no commitment pricing; skipping.", resource.id)
        return []

    on_demand = pricing.unit_price
    committed = on_demand * COMMITMENT_PRICE_RATIO
    baseline = cost_engine.current_cost(on_demand, BASELINE_QUANTITY, pricing.unit)
    risk = cost_engine.risk_score(metrics, RiskLevel.LOW)

    results: list[SimulationResult] = []
    for coverage in COMMITMENT_COVERAGE_LEVELS:
        raw = cost_engine.commitment_savings(
            on_demand, committed, coverage, BASELINE_QUANTITY, pricing.unit
        )
        cost = cost_engine.finalize_savings(
            baseline, raw, COMMITMENT_SAVINGS_CAP,
            limits.min_monthly_cost, limits.min_monthly_savings,
        )
        pct = round(coverage * 100)
        results.append(
            _result(
                name=f"Commitment discount ({pct}%): {resource.id}",
                cost=cost,
                risk=risk,
                confidence=1.0 - risk,
                difficulty=DifficultyTier.HARD,
                description=(
                    f"{params.commit_years}-year commitment at {pct}% coverage saves about "
                    f"{_yearly(cost.savings):,.0f} {limits.currency} per year."
                ),
                action=ActionType.COMMITMENT,
                resource_id=resource.id,
                coverage_fraction=coverage,
            )
        )
    return results


# ── Storage lifecycle ─────────────────────────────────────────────────────────


def _simulate_storage(
    facts: ResourceFacts, params: ScenarioParams, limits: SimulationConfig
) -> list[SimulationResult]:
    resource, pricing, _ = facts
    size_gb = limits.storage_size_gb
    current_tier = pricing.unit_price
    target_tier = current_tier * STORAGE_TARGET_PRICE_RATIO

    baseline = cost_engine.current_cost(current_tier, size_gb, pricing.unit)

    results: list[SimulationResult] = []
    for retention in STORAGE_RETENTION_DAYS:
        raw = cost_engine.storage_lifecycle_savings(current_tier, target_tier, size_gb)
        cost = cost_engine.finalize_savings(
            baseline, raw, STORAGE_SAVINGS_CAP,
            limits.min_monthly_cost, limits.min_monthly_savings,
        )
        results.append(
            _result(
                name=f"Storage lifecycle ({retention} days): {resource.id}",
                cost=cost,
                risk=STORAGE_RISK,
                confidence=STORAGE_CONFIDENCE,
                difficulty=DifficultyTier.EASY,
                description=(
                    f"Move objects not accessed for {retention} days to {params.target_tier} "
                    f"to save about {_yearly(cost.savings):,.0f} {limits.currency} per year."
                ),
                action=ActionType.STORAGE,
                resource_id=resource.id,
                retention_days=retention,
            )
        )
    return results


# ── Rightsizing ───────────────────────────────────────────────────────────────


def _simulate_rightsizing(
    facts: ResourceFacts, params: ScenarioParams, limits: SimulationConfig
) -> list[SimulationResult]:
    resource, pricing, metrics = facts
    avg = metrics.avg if metrics.avg is not None else RIGHTSIZING_MISSING_AVG
    if avg >= RIGHTSIZING_AVG_THRESHOLD:
        return []

    baseline = cost_engine.current_cost(pricing.unit_price, BASELINE_QUANTITY, pricing.unit)
    floored = max(baseline, limits.min_monthly_cost)
    raw = floored * cost_engine.rightsizing_savings_rate(avg)
    cost = cost_engine.finalize_savings(
        baseline, raw, RIGHTSIZING_SAVINGS_CAP,
        limits.min_monthly_cost, limits.min_monthly_savings,
    )

    target = f"to {params.target_size}" if params.target_size else "one instance size down"
    return [
        _result(
            name=f"Rightsizing: {resource.id}",
            cost=cost,
            risk=RIGHTSIZING_RISK,
            confidence=1.0 - RIGHTSIZING_RISK,
            difficulty=DifficultyTier.HARD,
            description=(
                f"Average CPU and memory utilization is {avg:.1f}%; moving {target} saves "
                f"about {_yearly(cost.savings):,.0f} {limits.currency} per year."
            ),
            action=ActionType.RIGHTSIZING,
            resource_id=resource.id,
        )
    ]


# ── Cleanup ───────────────────────────────────────────────────────────────────


def _simulate_cleanup(
    facts: ResourceFacts, params: ScenarioParams, limits: SimulationConfig
) -> list[SimulationResult]:
    # Reserved: zombie detection is not implemented yet.
    return []


SCENARIO_GENERATORS: dict[ActionType, ScenarioFn] = {
    ActionType.OFFHOURS:    _simulate_offhours,
    ActionType.COMMITMENT:  _simulate_commitment,
    ActionType.STORAGE:     _simulate_storage,
    ActionType.RIGHTSIZING: _simulate_rightsizing,
    ActionType.CLEANUP:     _simulate_cleanup,
}


# ── Generator ─────────────────────────────────────────────────────────────────


class ScenarioGenerator:
    """Run the scenario function for an action over a batch of resources.

    Args:
        config: Floors, caps and approximations.
        pricing: Pricing collaborator.
        metrics: Usage-metric collaborator.
    """

    def __init__(
        self,
        config: SimulationConfig,
        pricing: PricingProvider,
        metrics: MetricsProvider,
    ) -> None:
        self._config = config
        self._pricing = pricing
        self._metrics = metrics

    @property
    def config(self) -> SimulationConfig:
        return self._config

    def generate(
        self,
        action: ActionType,
        resources: Sequence[ResourceInfo],
        params: ScenarioParams | None = None,
    ) -> list[SimulationResult]:
        """Simulate ``action`` for every resource; never raises per resource."""
        fn = SCENARIO_GENERATORS[ActionType(action)]
        effective = params if params is not None else default_params()

        results: list[SimulationResult] = []
        for resource in resources:
            try:
                facts = ResourceFacts(
                    resource=resource,
                    pricing=self._pricing.get_pricing(resource),
                    metrics=self._metrics.get_usage_metrics(resource),
                )
                results.extend(fn(facts, effective, self._config))
            except Exception as exc:
                context_logger(logger, action=action, resource_id=resource.id).warning(
                    "Skipping resource %s for %s simulation: %s", resource.id, action, exc,
                    exc_info=logger.isEnabledFor(logging.DEBUG),
                )

        logger.debug(
            "%s simulation: %d resources → %d scenarios.", action, len(resources), len(results)
        )
        return results


# ── Helpers ───────────────────────────────────────────────────────────────────


def _yearly(monthly_savings: float) -> float:
    return max(0.0, monthly_savings) * 12.0


def _result(
    *,
    name: str,
    cost: cost_engine.FinalizedCost,
    risk: float,
    confidence: float,
    difficulty: int,
    description: str,
    action: ActionType,
    resource_id: str,
    coverage_fraction: float | None = None,
    retention_days: int | None = None,
) -> SimulationResult:
    return SimulationResult(
        scenario_name=name,
        current_cost=cost.current_cost,
        new_cost=cost.new_cost,
        savings=cost.savings,
        risk_score=risk,
        priority_score=cost_engine.priority_score(cost.savings, risk, difficulty),
        confidence=confidence,
        description=description,
        action_type=action,
        resource_id=resource_id,
        coverage_fraction=coverage_fraction,
        retention_days=retention_days,
    )
