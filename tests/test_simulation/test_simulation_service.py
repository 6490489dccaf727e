"""
Tests for ucas/simulation/service.py — the simulate entry point end to end.

Covers:
  - "i-1" on a $0.0416/h instance, OFFHOURS with default params
  - Response metadata (action code, total resources)
  - Unknown ids resolve to the default descriptor and are still simulated
  - Explicit params are honoured
  - Per-resource failures never reach the caller
"""

from __future__ import annotations

import pytest

from ucas.config import InventoryConfig, SimulationConfig
from ucas.models.scenario import ScenarioParams, SimulateRequest
from ucas.providers.inventory import ResourceResolver
from ucas.providers.static import EstimatedMetricsProvider, StaticPricingProvider
from ucas.simulation.generator import ScenarioGenerator
from ucas.simulation.service import SimulationService
from ucas.taxonomy.action_taxonomy import ActionType


@pytest.fixture
def service(make_inventory, resource_factory, generator) -> SimulationService:
    inventory = make_inventory({"aws-dev": [resource_factory("i-1", instance_type="t3.medium")]})
    return SimulationService(generator, ResourceResolver(inventory, InventoryConfig()))


class TestSimulate:
    def test_end_to_end_offhours(self, service):
        response = service.simulate(
            SimulateRequest(resource_ids=("i-1",), action=ActionType.OFFHOURS)
        )
        assert response.action_type_code == "offhours"
        assert response.total_resources == 1
        (result,) = response.scenarios
        assert "i-1" in result.scenario_name
        assert result.new_cost < result.current_cost
        assert 10_000.0 <= result.savings <= 0.5 * result.current_cost

    def test_unknown_id_uses_default_descriptor(self):
        generator = ScenarioGenerator(
            SimulationConfig(),
            StaticPricingProvider(hourly_prices={}, default_hourly_price=0.0416),
            EstimatedMetricsProvider(),
        )
        service = SimulationService(generator, ResourceResolver(None, InventoryConfig()))
        response = service.simulate(
            SimulateRequest(resource_ids=("i-1",), action=ActionType.OFFHOURS)
        )
        assert len(response.scenarios) == 1

    def test_multiple_resources_commitment(self, service):
        response = service.simulate(
            SimulateRequest(resource_ids=("i-1", "i-2"), action=ActionType.COMMITMENT)
        )
        assert response.total_resources == 2
        assert len(response.scenarios) == 6

    def test_explicit_params(self, service):
        response = service.simulate(
            SimulateRequest(
                resource_ids=("i-1",),
                action=ActionType.OFFHOURS,
                params=ScenarioParams(stop_at="08:00", start_at="12:00"),
            )
        )
        (result,) = response.scenarios
        # 4 h/day * 22 days on the floored 100 000 baseline
        assert result.savings == pytest.approx(4.0 * 22 / 720 * 100_000.0)

    def test_cleanup_returns_empty_scenarios(self, service):
        response = service.simulate(
            SimulateRequest(resource_ids=("i-1",), action=ActionType.CLEANUP)
        )
        assert response.scenarios == []
        assert response.action_type_code == "cleanup"

    def test_failures_never_raise(self, make_inventory, resource_factory):
        class _Down:
            def get_pricing(self, resource):
                raise ConnectionError("pricing down")

        generator = ScenarioGenerator(SimulationConfig(), _Down(), EstimatedMetricsProvider())
        service = SimulationService(
            generator, ResourceResolver(make_inventory({}), InventoryConfig())
        )
        response = service.simulate(
            SimulateRequest(resource_ids=("i-1",), action=ActionType.STORAGE)
        )
        assert response.scenarios == []
        assert response.total_resources == 1
