"""
Recommendation ranker: discovers running resources, simulates several actions
over them, and turns the best scenarios into a top-N recommendation list.

Usage flow
----------
1. discover_resources()
   -> list[ResourceInfo]  (running resources of every active account)

2. collect_candidates(resources)
   -> list[SimulationResult]  (at most one per action block)

3. get_top_recommendations()
   -> list[Recommendation]  (sorted by priority_score desc, at most top_n)

Action blocks
-------------
offhours     default params; keep the single highest-savings scenario.
commitment   default params; keep only the 70 %-coverage scenarios, then the
             highest-savings one among them.
rightsizing  default params; keep the highest-savings scenario if savings > 0.
storage      not wired: storage discovery is not available upstream yet.

Each block is isolated; an unexpected failure is logged and the block
contributes nothing.  Discovery failures are isolated per account.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Optional

from ucas.models.recommendation import Recommendation
from ucas.models.resource import ResourceInfo
from ucas.models.scenario import ScenarioParams, SimulationResult, default_params
from ucas.providers.base import InventoryProvider
from ucas.rules.catalog import RuleCatalog
from ucas.simulation.generator import ScenarioGenerator
from ucas.taxonomy.action_taxonomy import ActionType
from ucas.utils.logging import context_logger

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 3
RANKED_COMMITMENT_COVERAGE = 0.7

GENERIC_TITLE = "Cost optimization recommendation"

TITLE_TEMPLATES: dict[ActionType, str] = {
    ActionType.OFFHOURS:    "Save up to {savings:,.0f} {currency} per year with off-hours auto-stop",
    ActionType.COMMITMENT:  "Save {savings:,.0f} {currency} per year with a commitment discount",
    ActionType.STORAGE:     "Save {savings:,.0f} {currency} per year by archiving cold storage",
    ActionType.RIGHTSIZING: "Save {savings:,.0f} {currency} per year by downsizing instances",
    ActionType.CLEANUP:     "Save {savings:,.0f} {currency} per year by removing zombie resources",
}


def generate_title(action: Optional[ActionType], yearly_savings: float, currency: str = "KRW") -> str:
    """Per-action headline with rounded yearly savings; generic if unknown."""
    template = TITLE_TEMPLATES.get(action) if action is not None else None
    if template is None:
        return GENERIC_TITLE
    return template.format(savings=max(0.0, yearly_savings), currency=currency)


def resource_summary(resource_id: Optional[str], resource: Optional[ResourceInfo]) -> str:
    """Bullet block naming the resource a recommendation applies to."""
    if resource is None:
        return f"• Resource: {resource_id or 'unknown'}\n• Service: Compute"
    return (
        f"• Resource: {resource.name or resource.id} ({resource.id})\n"
        f"• Service: {resource.provider} {resource.service}\n"
        f"• Instance type: {resource.instance_type or 'N/A'}\n"
        f"• Region: {resource.region}"
    )


def rule_params_for(
    action: Optional[ActionType], params: ScenarioParams, result: SimulationResult
) -> dict[str, Any]:
    """Express the parameters a scenario ran with in rule-document shape."""
    if action == ActionType.OFFHOURS:
        return {
            "stop": {
                "weekdays": list(params.weekdays),
                "stop_at": params.stop_at,
                "start_at": params.start_at,
                "timezone": params.timezone,
            }
        }
    if action == ActionType.COMMITMENT:
        level = result.coverage_fraction if result.coverage_fraction is not None else params.commit_level
        return {"commit_level": level, "commit_years": params.commit_years}
    if action == ActionType.STORAGE:
        days = result.retention_days if result.retention_days is not None else params.retention_days
        return {"target_tier": params.target_tier, "retention_days": days}
    if action == ActionType.RIGHTSIZING and params.target_size:
        return {"target_size": params.target_size}
    return {}


# ── Selectors ─────────────────────────────────────────────────────────────────


def _best_by_savings(results: list[SimulationResult]) -> Optional[SimulationResult]:
    if not results:
        return None
    return max(results, key=lambda r: r.savings)


def _select_commitment(results: list[SimulationResult]) -> Optional[SimulationResult]:
    ranked = [
        r for r in results
        if r.coverage_fraction is not None
        and math.isclose(r.coverage_fraction, RANKED_COMMITMENT_COVERAGE)
    ]
    return _best_by_savings(ranked)


def _select_rightsizing(results: list[SimulationResult]) -> Optional[SimulationResult]:
    best = _best_by_savings(results)
    if best is None or best.savings <= 0:
        return None
    return best


Selector = Callable[[list[SimulationResult]], Optional[SimulationResult]]

RANKED_ACTIONS: tuple[tuple[ActionType, Selector], ...] = (
    (ActionType.OFFHOURS, _best_by_savings),
    (ActionType.COMMITMENT, _select_commitment),
    (ActionType.RIGHTSIZING, _select_rightsizing),
)


# ── Ranker ────────────────────────────────────────────────────────────────────


class RecommendationRanker:
    """Build the top-N recommendation list across all active accounts.

    Args:
        generator: Scenario generator (carries the simulation limits).
        inventory: Account and resource listing collaborator.
        catalog:   Rule catalog used for the justification text.
        top_n:     Maximum number of recommendations returned.
    """

    def __init__(
        self,
        generator: ScenarioGenerator,
        inventory: InventoryProvider,
        catalog: RuleCatalog,
        top_n: int = DEFAULT_TOP_N,
    ) -> None:
        self._generator = generator
        self._inventory = inventory
        self._catalog = catalog
        self._top_n = top_n

    def discover_resources(self) -> list[ResourceInfo]:
        """Running resources of every active account, first occurrence wins."""
        try:
            accounts = self._inventory.list_accounts()
        except Exception as exc:
            logger.warning("Could not list accounts: %s", exc)
            return []

        seen: set[str] = set()
        discovered: list[ResourceInfo] = []
        for account in accounts:
            if not account.active:
                continue
            try:
                resources = self._inventory.list_resources(account)
            except Exception as exc:
                context_logger(logger, account_id=account.account_id).warning(
                    "Failed to list resources for %s account %s: %s",
                    account.provider, account.account_id, exc,
                )
                continue

            running = [r for r in resources if r.is_running and r.id not in seen]
            seen.update(r.id for r in running)
            discovered.extend(running)
            logger.debug(
                "Found %d running resources in %s account %s.",
                len(running), account.provider, account.account_id,
            )
        return discovered

    def collect_candidates(
        self,
        resources: list[ResourceInfo],
        params: Optional[ScenarioParams] = None,
    ) -> list[SimulationResult]:
        """Run every ranked action block and keep each block's pick."""
        effective = params if params is not None else default_params()
        candidates: list[SimulationResult] = []

        for action, select in RANKED_ACTIONS:
            try:
                picked = select(self._generator.generate(action, resources, effective))
            except Exception as exc:
                context_logger(logger, action=action).warning(
                    "Failed to simulate %s for recommendations: %s", action, exc
                )
                continue
            if picked is not None:
                candidates.append(picked)

        # TODO: wire STORAGE once bucket/snapshot discovery exists in the inventory.
        logger.debug("Storage lifecycle is not part of ranking yet.")
        return candidates

    def get_top_recommendations(self) -> list[Recommendation]:
        resources = self.discover_resources()
        if not resources:
            logger.warning("No running resources found; returning no recommendations.")
            return []

        logger.info("Ranking recommendations over %d resources.", len(resources))
        params = default_params()
        candidates = self.collect_candidates(resources, params)
        ranked = sorted(candidates, key=lambda r: r.priority_score, reverse=True)[: self._top_n]

        by_id = {r.id: r for r in resources}
        recommendations = [self._to_recommendation(r, params, by_id) for r in ranked]
        logger.info("Generated %d recommendations.", len(recommendations))
        return recommendations

    def _to_recommendation(
        self,
        result: SimulationResult,
        params: ScenarioParams,
        resources: dict[str, ResourceInfo],
    ) -> Recommendation:
        limits = self._generator.config
        action = result.action_type
        yearly = max(result.savings, limits.min_monthly_savings) * 12.0

        basis = self._catalog.generate_basis_description(
            action if action is not None else "",
            result.savings,
            rule_params_for(action, params, result),
            currency=limits.currency,
        )
        summary = resource_summary(result.resource_id, resources.get(result.resource_id or ""))

        return Recommendation(
            title=generate_title(action, yearly, limits.currency),
            description=result.description,
            estimated_savings=yearly,
            action_type_code=action.value if action is not None else "",
            scenario=result.model_copy(update={"description": f"{summary}\n\n{basis}"}),
        )
