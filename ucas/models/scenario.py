"""
Scenario request, parameter and result models.

``ScenarioParams`` carries the optional per-action knobs.  Every field has a
documented default, so ``ScenarioParams()`` is the canonical default
configuration for all action types.

``SimulationResult`` is one projected scenario for one resource.  It is
frozen and validates its own arithmetic on construction:

    new_cost == current_cost - savings   (within 1e-6)
    savings >= 0
    risk_score, confidence in [0, 1]

``SimulateRequest`` / ``SimulateResponse`` are the simulate entry point
contract.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ucas.taxonomy.action_taxonomy import ActionType

COST_EPSILON = 1e-6


class ScenarioParams(BaseModel):
    """Optional per-action configuration.

    Off-hours fields: ``weekdays``, ``stop_at``, ``start_at``, ``timezone``,
    ``scale_to_zero_supported``.  Commitment: ``commit_level``,
    ``commit_years``.  Storage: ``target_tier``, ``retention_days``.
    Rightsizing: ``target_size``.  Cleanup: ``unused_days``.
    """

    model_config = ConfigDict(frozen=True)

    # Off-hours
    weekdays: tuple[str, ...] = ("Mon-Fri",)
    stop_at: str = "20:00"
    start_at: str = "08:30"
    timezone: str = "Asia/Seoul"
    scale_to_zero_supported: bool = True

    # Commitment
    commit_level: float = 0.7
    commit_years: int = 1

    # Storage lifecycle
    target_tier: str = "Cold"
    retention_days: int = 90

    # Rightsizing
    target_size: Optional[str] = None

    # Cleanup
    unused_days: Optional[int] = None

    @field_validator("commit_level")
    @classmethod
    def validate_commit_level(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError(f"commit_level must be in (0.0, 1.0], got {v}.")
        return v

    @field_validator("commit_years")
    @classmethod
    def validate_commit_years(cls, v: int) -> int:
        if v not in (1, 3):
            raise ValueError(f"commit_years must be 1 or 3, got {v}.")
        return v

    @field_validator("retention_days")
    @classmethod
    def validate_retention(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"retention_days must be positive, got {v}.")
        return v


def default_params() -> ScenarioParams:
    """Return the documented default parameters for every action type."""
    return ScenarioParams()


class SimulationResult(BaseModel):
    """One projected scenario for one resource.

    Attributes:
        scenario_name: Human-readable name; always references the resource id.
        current_cost: Baseline monthly cost (after the configured floor).
        new_cost: Projected monthly cost after the action.
        savings: Monthly savings, ``current_cost - new_cost``.
        risk_score: 0 (safe) – 1 (risky).
        priority_score: Sortable blend of savings, risk and difficulty.
        confidence: 0–1, usually ``1 - risk_score``.
        description: Scenario summary shown to operators.
        action_type: Action that produced this scenario.
        resource_id: Resource the scenario applies to.
        coverage_fraction: Commitment coverage for COMMITMENT scenarios.
        retention_days: Retention window for STORAGE scenarios.
    """

    model_config = ConfigDict(frozen=True)

    scenario_name: str
    current_cost: float
    new_cost: float
    savings: float
    risk_score: float
    priority_score: float
    confidence: float
    description: str
    action_type: Optional[ActionType] = None
    resource_id: Optional[str] = None
    coverage_fraction: Optional[float] = None
    retention_days: Optional[int] = None

    @model_validator(mode="after")
    def validate_cost_arithmetic(self) -> "SimulationResult":
        if self.savings < 0:
            raise ValueError(f"savings must be non-negative, got {self.savings}.")
        if self.current_cost < 0:
            raise ValueError(f"current_cost must be non-negative, got {self.current_cost}.")
        if abs(self.new_cost - (self.current_cost - self.savings)) > COST_EPSILON:
            raise ValueError(
                f"new_cost ({self.new_cost}) must equal current_cost "
                f"({self.current_cost}) - savings ({self.savings})."
            )
        if not 0.0 <= self.risk_score <= 1.0:
            raise ValueError(f"risk_score must be in [0.0, 1.0], got {self.risk_score}.")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0.0, 1.0], got {self.confidence}.")
        return self


class SimulateRequest(BaseModel):
    """Simulate entry point input."""

    model_config = ConfigDict(frozen=True)

    resource_ids: tuple[str, ...]
    action: ActionType
    params: Optional[ScenarioParams] = None

    @field_validator("resource_ids")
    @classmethod
    def validate_resource_ids(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not v:
            raise ValueError("resource_ids must not be empty.")
        if any(not rid or not rid.strip() for rid in v):
            raise ValueError("resource_ids must not contain blank ids.")
        return v

    @property
    def effective_params(self) -> ScenarioParams:
        return self.params if self.params is not None else default_params()


class SimulateResponse(BaseModel):
    """Simulate entry point output."""

    model_config = ConfigDict(frozen=True)

    scenarios: list[SimulationResult]
    action_type_code: str
    total_resources: int
