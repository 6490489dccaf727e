"""
Shared pytest fixtures for the UCAS test suite.

Provides:
  - ``simulation_config``: default floors and approximations.
  - ``generator``: a ``ScenarioGenerator`` wired to the static price table and
    the fixed metrics estimate.
  - ``resource_factory``: builds ``ResourceInfo`` with overridable fields.
  - ``StubInventory`` / ``make_inventory``: in-memory ``InventoryProvider``
    with optional failing accounts.
  - ``restore_root_logger``: autouse guard so tests that call
    ``configure_logging`` do not leak handlers into later tests.
"""

from __future__ import annotations

import logging
from typing import Callable, Generator, Optional

import pytest

from ucas.config import SimulationConfig
from ucas.models.resource import CloudAccount, ResourceInfo
from ucas.providers.static import EstimatedMetricsProvider, StaticPricingProvider
from ucas.simulation.generator import ScenarioGenerator


# ── Logging guard ─────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def restore_root_logger() -> Generator[None, None, None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# ── Domain factories ──────────────────────────────────────────────────────────

def make_resource(
    resource_id: str = "i-1",
    instance_type: Optional[str] = "t3.medium",
    service: str = "EC2",
    provider: str = "AWS",
    tags: Optional[dict[str, str]] = None,
    state: Optional[str] = "running",
    name: Optional[str] = None,
) -> ResourceInfo:
    return ResourceInfo(
        id=resource_id,
        provider=provider,
        service=service,
        region="ap-northeast-2",
        project="default",
        tags={"env": "dev"} if tags is None else tags,
        instance_type=instance_type,
        name=name,
        state=state,
    )


@pytest.fixture
def resource_factory() -> Callable[..., ResourceInfo]:
    return make_resource


@pytest.fixture
def simulation_config() -> SimulationConfig:
    return SimulationConfig()


@pytest.fixture
def sample_resource() -> ResourceInfo:
    """A running t3.medium ($0.0416/h) tagged env=dev."""
    return make_resource()


@pytest.fixture
def generator(simulation_config: SimulationConfig) -> ScenarioGenerator:
    return ScenarioGenerator(simulation_config, StaticPricingProvider(), EstimatedMetricsProvider())


# ── Inventory stub ────────────────────────────────────────────────────────────

class StubInventory:
    """In-memory ``InventoryProvider``.

    Args:
        resources_by_account: account_id → resources.
        failing: account ids whose ``list_resources`` raises.
        inactive: account ids reported as inactive.
    """

    def __init__(
        self,
        resources_by_account: dict[str, list[ResourceInfo]],
        failing: frozenset[str] = frozenset(),
        inactive: frozenset[str] = frozenset(),
    ) -> None:
        self._resources = resources_by_account
        self._failing = failing
        self._inactive = inactive
        self.listed: list[str] = []

    def list_accounts(self) -> list[CloudAccount]:
        return [
            CloudAccount(account_id=aid, provider="AWS", active=aid not in self._inactive)
            for aid in self._resources
        ]

    def list_resources(self, account: CloudAccount) -> list[ResourceInfo]:
        self.listed.append(account.account_id)
        if account.account_id in self._failing:
            raise ConnectionError(f"credentials expired for {account.account_id}")
        return list(self._resources[account.account_id])


@pytest.fixture
def make_inventory() -> Callable[..., StubInventory]:
    return StubInventory
