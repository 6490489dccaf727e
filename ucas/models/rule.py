"""
Declarative optimization rule model.

A ``UcasRule`` mirrors one ``config/rules/ucas_*.toml`` document.  The
``estimate_formula`` is documentation for operators and is never evaluated.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ucas.taxonomy.action_taxonomy import ActionType


class UcasRule(BaseModel):
    """One optimization rule, keyed by its action type in the catalog.

    Attributes:
        rule_id: Stable identifier, e.g. ``"ucas-offhours-001"``.
        action_type: Action the rule justifies.
        scope: Resource family the rule targets (``"compute"``, ``"storage"``).
        match_criteria: Flat mapping of match keys (``"tags.env"``) to values.
        params: Default action parameters declared by the rule.
        estimate_formula: Savings formula, for display only.
        approval_required: Whether applying the action needs sign-off.
    """

    model_config = ConfigDict(frozen=True)

    rule_id: str
    action_type: ActionType
    scope: str = ""
    match_criteria: dict[str, Any] = Field(default_factory=dict)
    params: dict[str, Any] = Field(default_factory=dict)
    estimate_formula: str | None = None
    approval_required: bool = False

    @field_validator("rule_id")
    @classmethod
    def validate_rule_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("rule_id must not be empty.")
        return v.strip()
