"""
Declarative optimization rules.

  rules/catalog.py — load ``config/rules/ucas_*.toml`` into an immutable
                     RuleCatalog and render rule-based justifications.
"""

from ucas.rules.catalog import GENERIC_BASIS, RuleCatalog, load_rule_catalog

__all__ = [
    "GENERIC_BASIS",
    "RuleCatalog",
    "load_rule_catalog",
]
