"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``UCAS_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The simulator, the ranker and every CLI command receive an ``AppConfig``
(or one of its frozen sections) — never raw dicts or ad-hoc env lookups.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class SimulationConfig(BaseModel):
    """Floors, caps and approximations shared by every scenario generator.

    Monetary floors are expressed in ``currency`` per month.  They guarantee
    that near-zero list prices never produce degenerate scenarios.
    """

    model_config = ConfigDict(frozen=True)

    currency: str = "KRW"
    min_monthly_cost: float = 100_000.0
    min_monthly_savings: float = 10_000.0
    weekday_days_per_month: int = 22
    storage_size_gb: float = 100.0
    default_daily_off_hours: float = 12.0

    @field_validator("min_monthly_cost", "min_monthly_savings", "storage_size_gb")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Simulation floors must be non-negative, got {v}.")
        return v

    @field_validator("weekday_days_per_month")
    @classmethod
    def validate_days(cls, v: int) -> int:
        if not 1 <= v <= 31:
            raise ValueError(f"weekday_days_per_month must be in [1, 31], got {v}.")
        return v


class RulesConfig(BaseModel):
    """Location and naming convention of the bundled rule documents."""

    model_config = ConfigDict(frozen=True)

    rules_dir: str = "config/rules"
    file_pattern: str = "ucas_*.toml"


class InventoryConfig(BaseModel):
    """Defaults used by the bundled collaborator implementations."""

    model_config = ConfigDict(frozen=True)

    inventory_file: str = "data/inventory/inventory.json"
    default_provider: str = "AWS"
    default_service: str = "EC2"
    default_region: str = "us-east-1"
    default_project: str = "default"
    default_hourly_price: float = 0.15
    storage_gb_month_price: float = 0.023
    commitment_discount: float = 0.5

    @field_validator("commitment_discount")
    @classmethod
    def validate_discount(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError(f"commitment_discount must be in (0.0, 1.0], got {v}.")
        return v


class RecommendationConfig(BaseModel):
    """Top-N recommendation settings."""

    model_config = ConfigDict(frozen=True)

    top_n: int = 3

    @field_validator("top_n")
    @classmethod
    def validate_top_n(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"top_n must be non-negative, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + ``UCAS_*``.
    """

    model_config = ConfigDict(frozen=True)

    simulation: SimulationConfig = SimulationConfig()
    rules: RulesConfig = RulesConfig()
    inventory: InventoryConfig = InventoryConfig()
    recommendations: RecommendationConfig = RecommendationConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def resolve_path(path: str | Path) -> Path:
    """Resolve a config-relative path against the project root."""
    p = Path(path)
    if p.is_absolute():
        return p
    return _find_project_root() / p


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config explicitly."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply UCAS_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply UCAS_* env vars to the raw config dict.

    Supported overrides:
      UCAS_RULES_DIR        → raw["rules"]["rules_dir"]
      UCAS_INVENTORY_FILE   → raw["inventory"]["inventory_file"]
      UCAS_LOG_LEVEL        → raw["logging"]["level"]
      UCAS_DEBUG            → raw["debug"]
    """
    if rules_dir := os.environ.get("UCAS_RULES_DIR"):
        raw.setdefault("rules", {})["rules_dir"] = rules_dir

    if inventory_file := os.environ.get("UCAS_INVENTORY_FILE"):
        raw.setdefault("inventory", {})["inventory_file"] = inventory_file

    if log_level := os.environ.get("UCAS_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("UCAS_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        simulation=SimulationConfig(**raw.get("simulation", {})),
        rules=RulesConfig(**raw.get("rules", {})),
        inventory=InventoryConfig(**raw.get("inventory", {})),
        recommendations=RecommendationConfig(**raw.get("recommendations", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
