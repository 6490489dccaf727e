"""
UCAS — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Build the rule catalog and collaborators.
  4. Run the simulation / ranking.
  5. Print JSON to stdout.

Install and run::

    pip install -e .
    ucas --help
    ucas validate-config
    ucas list-rules
    ucas simulate --action offhours --resource i-0a1b2c3d4e5f60001
    ucas simulate --action commitment -r i-1 -r i-2 --commit-years 3
    ucas recommend --top-n 3
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer

from ucas.taxonomy.action_taxonomy import ActionType

app = typer.Typer(
    name="ucas",
    help="Universal Cost Action Simulator — what-if engine for cloud cost actions.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from ucas.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from ucas.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_catalog(config):
    from ucas.config import resolve_path
    from ucas.rules.catalog import load_rule_catalog

    return load_rule_catalog(resolve_path(config.rules.rules_dir), config.rules.file_pattern)


def _build_generator(config):
    from ucas.providers.static import EstimatedMetricsProvider, StaticPricingProvider
    from ucas.simulation.generator import ScenarioGenerator

    return ScenarioGenerator(
        config.simulation,
        StaticPricingProvider.from_config(config.inventory),
        EstimatedMetricsProvider(),
    )


def _inventory_path(config, inventory: Optional[str]) -> Path:
    from ucas.config import resolve_path

    return Path(inventory) if inventory else resolve_path(config.inventory.inventory_file)


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Currency:          {config.simulation.currency}")
    typer.echo(f"  Min monthly cost:  {config.simulation.min_monthly_cost:,.0f}")
    typer.echo(f"  Min monthly save:  {config.simulation.min_monthly_savings:,.0f}")
    typer.echo(f"  Rules directory:   {config.rules.rules_dir}")
    typer.echo(f"  Inventory file:    {config.inventory.inventory_file}")
    typer.echo(f"  Top-N:             {config.recommendations.top_n}")
    typer.echo(f"  Log level:         {config.logging.level}")
    typer.echo(f"  Debug mode:        {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))


@app.command("list-rules")
def list_rules(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Print every loaded optimization rule as JSON."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    catalog = _load_catalog(config)
    rules = catalog.get_all_rules()
    _echo_json([rules[action].model_dump(mode="json") for action in sorted(rules)])


@app.command("simulate")
def simulate(
    action: ActionType = typer.Option(..., "--action", "-a", help="Action to simulate."),
    resources: list[str] = typer.Option(..., "--resource", "-r", help="Resource id (repeatable)."),
    stop_at: Optional[str] = typer.Option(None, "--stop-at", help="Off-hours stop time, HH:MM."),
    start_at: Optional[str] = typer.Option(None, "--start-at", help="Off-hours start time, HH:MM."),
    commit_level: Optional[float] = typer.Option(None, "--commit-level", help="Commitment level (0, 1]."),
    commit_years: Optional[int] = typer.Option(None, "--commit-years", help="Commitment term: 1 or 3."),
    target_tier: Optional[str] = typer.Option(None, "--target-tier", help="Storage target tier."),
    retention_days: Optional[int] = typer.Option(None, "--retention-days", help="Storage retention days."),
    inventory: Optional[str] = typer.Option(None, "--inventory", help="Inventory snapshot JSON."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Simulate one action for the given resources and print the scenarios.

    Unknown resource ids are simulated with a default descriptor.
    """
    from pydantic import ValidationError

    from ucas.models.scenario import ScenarioParams, SimulateRequest
    from ucas.providers.inventory import JsonInventoryProvider, ResourceResolver
    from ucas.simulation.service import SimulationService

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    overrides = {
        key: value
        for key, value in {
            "stop_at": stop_at,
            "start_at": start_at,
            "commit_level": commit_level,
            "commit_years": commit_years,
            "target_tier": target_tier,
            "retention_days": retention_days,
        }.items()
        if value is not None
    }
    try:
        request = SimulateRequest(
            resource_ids=tuple(resources),
            action=action,
            params=ScenarioParams(**overrides) if overrides else None,
        )
    except ValidationError as exc:
        typer.echo(f"[ERROR] Invalid simulation request: {exc}", err=True)
        raise typer.Exit(code=1)

    inventory_file = _inventory_path(config, inventory)
    provider = None
    if inventory_file.exists():
        provider = JsonInventoryProvider(inventory_file, config.inventory.default_region)
    else:
        typer.echo(f"[WARN] Inventory not found at {inventory_file}; using defaults.", err=True)

    service = SimulationService(
        _build_generator(config),
        ResourceResolver(provider, config.inventory),
    )
    response = service.simulate(request)
    _echo_json(response.model_dump(mode="json"))


@app.command("recommend")
def recommend(
    inventory: Optional[str] = typer.Option(None, "--inventory", help="Inventory snapshot JSON."),
    top_n: Optional[int] = typer.Option(None, "--top-n", help="Override recommendations.top_n."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Rank the best optimization actions across all active accounts."""
    from ucas.providers.inventory import JsonInventoryProvider
    from ucas.recommendations.ranker import RecommendationRanker

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    inventory_file = _inventory_path(config, inventory)
    if not inventory_file.exists():
        typer.echo(f"[ERROR] Inventory not found: {inventory_file}", err=True)
        raise typer.Exit(code=1)

    limit = top_n if top_n is not None else config.recommendations.top_n
    if limit < 0:
        typer.echo("[ERROR] --top-n must be non-negative.", err=True)
        raise typer.Exit(code=1)

    ranker = RecommendationRanker(
        _build_generator(config),
        JsonInventoryProvider(inventory_file, config.inventory.default_region),
        _load_catalog(config),
        top_n=limit,
    )
    recommendations = ranker.get_top_recommendations()
    _echo_json([r.model_dump(mode="json") for r in recommendations])


if __name__ == "__main__":
    app()
