"""
Recommendation view returned by the top-N ranker.

``estimated_savings`` is a *yearly* figure (monthly savings × 12), while the
embedded ``scenario`` keeps the monthly numbers it was simulated with.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from ucas.models.scenario import SimulationResult


class Recommendation(BaseModel):
    """A ranked, human-facing optimization recommendation.

    Attributes:
        title: Per-action headline interpolating rounded yearly savings.
        description: Scenario summary from the generator.
        estimated_savings: Yearly savings estimate.
        action_type_code: ``ActionType`` code, e.g. ``"offhours"``.
        scenario: The underlying scenario, with its description replaced by
            the rule-based justification.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    estimated_savings: float
    action_type_code: str
    scenario: SimulationResult

    @field_validator("title")
    @classmethod
    def validate_title_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("title must not be empty.")
        return v.strip()
