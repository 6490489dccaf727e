"""
Action taxonomy for cost-optimization scenarios.

Three closed vocabularies describe every simulated scenario:
  - ``ActionType``     — the *what*: which optimization is being simulated?
  - ``RiskLevel``      — the *how risky*: qualitative base level fed to the
                         risk formula.
  - ``DifficultyTier`` — the *how hard*: implementation effort, 1 (config
                         change) to 3 (contract or migration).

``PricingUnit`` names the billing units understood by the cost engine.

``ActionType`` is a closed union: every member must have exactly one
scenario generator and one title template.  Run
``tests/test_taxonomy/test_action_taxonomy.py`` to verify this contract.

This module has NO imports from any other ``ucas`` package.
"""

from enum import IntEnum, StrEnum


class ActionType(StrEnum):
    """Optimization action simulated by UCAS."""

    OFFHOURS = "offhours"
    """Scheduled stop/start of compute outside business hours."""

    COMMITMENT = "commitment"
    """Reserved capacity / savings plan covering steady baseline usage."""

    STORAGE = "storage"
    """Lifecycle transition of cold data to a cheaper storage tier."""

    RIGHTSIZING = "rightsizing"
    """Downsizing an under-utilized instance by one size class."""

    CLEANUP = "cleanup"
    """Removal of zombie resources.  Reserved: no generator output yet."""

    @property
    def label(self) -> str:
        return ACTION_LABELS[self]


ACTION_LABELS: dict[ActionType, str] = {
    ActionType.OFFHOURS:    "Off-hours scheduling",
    ActionType.COMMITMENT:  "Commitment optimization",
    ActionType.STORAGE:     "Storage lifecycle",
    ActionType.RIGHTSIZING: "Rightsizing",
    ActionType.CLEANUP:     "Zombie cleanup",
}


class RiskLevel(StrEnum):
    """Qualitative availability risk of applying an action."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DifficultyTier(IntEnum):
    """Implementation effort; divides the priority score."""

    EASY = 1
    MODERATE = 2
    HARD = 3


class PricingUnit(StrEnum):
    """Billing units understood by ``ucas.engine.cost_engine``."""

    HOUR = "hour"
    GB_MONTH = "GB-month"
    GB = "GB"
    REQUEST = "request"
    SLOT = "slot"
