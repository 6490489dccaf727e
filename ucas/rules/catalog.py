"""
Rule catalog: declarative optimization rules keyed by action type.

Loads every ``config/rules/ucas_*.toml`` document once, at startup, and
exposes an immutable lookup.  The catalog is built by ``load_rule_catalog``
and injected into whatever needs it; there is no module-level cache.

Usage
-----
    from ucas.rules.catalog import load_rule_catalog

    catalog = load_rule_catalog(resolve_path(config.rules.rules_dir))
    rule = catalog.get_rule(ActionType.OFFHOURS)
    text = catalog.generate_basis_description(ActionType.OFFHOURS, 38_194.0)

TOML structure expected in each rule document
---------------------------------------------
    rule_id = "ucas-offhours-001"
    action  = "offhours"
    scope   = "compute"

    [match]
    "tags.env" = ["dev", "stage"]
    "usage_metrics.idle_ratio" = ">= 0.6"

    [params.stop]
    stop_at  = "20:00"
    start_at = "08:30"

    [estimate]
    formula  = "(daily_off_hours / 24) * on_demand_hourly_price * 30"
    approval = true

Loading policy
--------------
Files are read in sorted name order.  When two documents declare the same
action, the later file replaces the earlier one and a warning is logged.  A
malformed document is logged and skipped; a missing directory yields an empty
catalog.  The loader never raises.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from ucas.models.rule import UcasRule
from ucas.taxonomy.action_taxonomy import ActionType

logger = logging.getLogger(__name__)

DEFAULT_RULE_PATTERN = "ucas_*.toml"

GENERIC_BASIS = "Cost can be reduced by applying the matching optimization rule."

_BASIS_HEADERS: dict[ActionType, str] = {
    ActionType.OFFHOURS:    "Off-hours shutdown rule applied:",
    ActionType.COMMITMENT:  "Commitment optimization rule applied:",
    ActionType.STORAGE:     "Storage lifecycle rule applied:",
    ActionType.RIGHTSIZING: "Rightsizing rule applied:",
    ActionType.CLEANUP:     "Zombie cleanup rule applied:",
}

_COMPARATORS = ("<", ">", "=", "!")


class RuleCatalog:
    """Read-only mapping of ``ActionType`` → ``UcasRule``.

    Args:
        rules: Rules keyed by action type.  Copied on construction.
    """

    def __init__(self, rules: Optional[Mapping[ActionType, UcasRule]] = None) -> None:
        self._rules: Mapping[ActionType, UcasRule] = MappingProxyType(dict(rules or {}))

    @classmethod
    def empty(cls) -> "RuleCatalog":
        return cls()

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, action: object) -> bool:
        return isinstance(action, str) and self.get_rule(action) is not None

    def get_rule(self, action: ActionType | str) -> Optional[UcasRule]:
        """Return the rule registered for ``action``, or ``None``."""
        try:
            key = ActionType(action)
        except ValueError:
            return None
        return self._rules.get(key)

    def get_all_rules(self) -> Mapping[ActionType, UcasRule]:
        """Read-only view of every loaded rule."""
        return self._rules

    def generate_basis_description(
        self,
        action: ActionType | str,
        savings: float,
        params: Optional[Mapping[str, Any]] = None,
        currency: str = "KRW",
    ) -> str:
        """Human-readable justification built from the rule's match and params.

        Falls back to ``GENERIC_BASIS`` when no rule is registered for
        ``action``.  ``params`` override the rule's own params.
        """
        rule = self.get_rule(action)
        if rule is None:
            return GENERIC_BASIS

        merged: dict[str, Any] = {**rule.params, **(params or {})}
        lines = [
            _BASIS_HEADERS.get(rule.action_type, GENERIC_BASIS),
            f"• Conditions: {_describe_conditions(rule.match_criteria)}",
        ]
        options = _describe_options(rule.action_type, merged)
        if options:
            lines.append(options)
        lines.append(f"• Estimated savings: {max(0.0, savings):,.0f} {currency}")
        if rule.approval_required:
            lines.append("• Approval required before applying.")
        return "\n".join(lines)


# ── Description helpers ───────────────────────────────────────────────────────


def _describe_conditions(match: Mapping[str, Any]) -> str:
    if not match:
        return "none declared"
    return "; ".join(_describe_condition(key, value) for key, value in match.items())


def _describe_condition(key: str, value: Any) -> str:
    if isinstance(value, list):
        return f"{key} in [{', '.join(str(v) for v in value)}]"
    if isinstance(value, str) and value.lstrip().startswith(_COMPARATORS):
        return f"{key} {value.strip()}"
    if isinstance(value, bool):
        return f"{key} is {str(value).lower()}"
    return f"{key} = {value}"


def _describe_options(action: ActionType, params: Mapping[str, Any]) -> str:
    if action == ActionType.OFFHOURS:
        stop = params.get("stop") or {}
        weekdays = stop.get("weekdays", ["Mon-Fri"])
        if isinstance(weekdays, (list, tuple)):
            weekdays = "/".join(str(d) for d in weekdays)
        return (
            f"• Schedule: {weekdays}, stopped "
            f"{stop.get('stop_at', '20:00')} ~ {stop.get('start_at', '08:30')}"
        )
    if action == ActionType.COMMITMENT:
        level = float(params.get("commit_level", 0.7))
        years = params.get("commit_years", 1)
        return f"• Commitment options: {round(level * 100)}% coverage, {years}-year term"
    if action == ActionType.STORAGE:
        tier = params.get("target_tier", "Cold")
        retention = params.get("retention_days", 90)
        return f"• Archiving options: move to {tier} tier, {retention}-day retention"
    if action == ActionType.RIGHTSIZING:
        if params.get("target_size"):
            return f"• Sizing: move to {params['target_size']}"
        return f"• Sizing: step down {params.get('step_down', 1)} size class"
    if not params:
        return ""
    return "• Options: " + ", ".join(f"{k}={v}" for k, v in params.items())


# ── Loader ────────────────────────────────────────────────────────────────────


def _parse_rule(raw: dict[str, Any]) -> UcasRule:
    """Parse one rule document into a ``UcasRule``.

    Raises:
        ValueError: If a required key is missing, the action is unknown, or a
            section or a per-action param has the wrong type.
        pydantic.ValidationError: If model validation fails.
    """
    rule_id = raw.get("rule_id")
    if not isinstance(rule_id, str):
        raise ValueError("missing or non-string 'rule_id'")

    action = raw.get("action")
    if not isinstance(action, str):
        raise ValueError("missing or non-string 'action'")
    action_type = ActionType(action.strip().lower())

    match = raw.get("match", {})
    params = raw.get("params", {})
    estimate = raw.get("estimate", {})
    for section, value in (("match", match), ("params", params), ("estimate", estimate)):
        if not isinstance(value, dict):
            raise ValueError(f"'{section}' must be a table, got {type(value).__name__}")

    formula = estimate.get("formula")
    if formula is not None and not isinstance(formula, str):
        raise ValueError("'estimate.formula' must be a string")

    _check_params(action_type, params)

    return UcasRule(
        rule_id=rule_id,
        action_type=action_type,
        scope=raw.get("scope") or "",
        match_criteria=match,
        params=params,
        estimate_formula=formula,
        approval_required=estimate.get("approval") is True,
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _check_params(action: ActionType, params: Mapping[str, Any]) -> None:
    """Reject rule params whose types the basis description cannot render.

    Raises:
        ValueError: Naming the first offending key.
    """
    if action == ActionType.OFFHOURS and "stop" in params:
        stop = params["stop"]
        if not isinstance(stop, dict):
            raise ValueError("'params.stop' must be a table")
        for key in ("stop_at", "start_at"):
            if key in stop and not isinstance(stop[key], str):
                raise ValueError(f"'params.stop.{key}' must be an HH:MM string")
        weekdays = stop.get("weekdays", [])
        if not isinstance(weekdays, (str, list)):
            raise ValueError("'params.stop.weekdays' must be a string or a list")
    elif action == ActionType.COMMITMENT:
        level = params.get("commit_level", 0.7)
        if not _is_number(level) or not 0.0 < level <= 1.0:
            raise ValueError(f"'params.commit_level' must be a number in (0, 1], got {level!r}")
        if params.get("commit_years", 1) not in (1, 3):
            raise ValueError(f"'params.commit_years' must be 1 or 3, got {params['commit_years']!r}")
    elif action == ActionType.STORAGE:
        if not isinstance(params.get("target_tier", "Cold"), str):
            raise ValueError("'params.target_tier' must be a string")
        if not _is_count(params.get("retention_days", 90)):
            raise ValueError(f"'params.retention_days' must be a positive integer, got {params['retention_days']!r}")
    elif action == ActionType.RIGHTSIZING:
        if not _is_count(params.get("step_down", 1)):
            raise ValueError(f"'params.step_down' must be a positive integer, got {params['step_down']!r}")
        if "target_size" in params and not isinstance(params["target_size"], str):
            raise ValueError("'params.target_size' must be a string")


def load_rule_catalog(rules_dir: str | Path, pattern: str = DEFAULT_RULE_PATTERN) -> RuleCatalog:
    """Scan ``rules_dir`` for rule documents and build a ``RuleCatalog``.

    Args:
        rules_dir: Directory holding the rule documents.
        pattern:   Glob pattern for rule file names.

    Returns:
        A catalog with every successfully parsed rule (possibly empty).
    """
    directory = Path(rules_dir)
    if not directory.is_dir():
        logger.warning("Rule directory %s not found; rule catalog is empty.", directory)
        return RuleCatalog.empty()

    paths = sorted(directory.glob(pattern))
    logger.info("Loading rules from %d files in %s", len(paths), directory)

    rules: dict[ActionType, UcasRule] = {}
    sources: dict[ActionType, str] = {}
    for path in paths:
        try:
            with open(path, "rb") as f:
                rule = _parse_rule(tomllib.load(f))
        except (OSError, tomllib.TOMLDecodeError, ValidationError, ValueError) as exc:
            logger.error("Skipping malformed rule file %s: %s", path.name, exc)
            continue

        if rule.action_type in rules:
            logger.warning(
                "Rule %s in %s replaces %s from %s for action %s.",
                rule.rule_id, path.name,
                rules[rule.action_type].rule_id, sources[rule.action_type],
                rule.action_type,
            )
        rules[rule.action_type] = rule
        sources[rule.action_type] = path.name
        logger.debug("Loaded rule %s for action %s", rule.rule_id, rule.action_type)

    logger.info("Loaded %d rules.", len(rules))
    return RuleCatalog(rules)
