"""
Simulate entry point.

``SimulationService.simulate(request)`` resolves the requested resource ids
through the inventory, fills in default parameters and runs the scenario
generator.  Failures are absorbed at the generator boundary, so the worst case
is a response with an empty ``scenarios`` list.

Usage::

    service = SimulationService(generator, resolver)
    response = service.simulate(
        SimulateRequest(resource_ids=("i-1",), action=ActionType.OFFHOURS)
    )
"""

from __future__ import annotations

import logging

from ucas.models.scenario import SimulateRequest, SimulateResponse
from ucas.providers.inventory import ResourceResolver
from ucas.simulation.generator import ScenarioGenerator

logger = logging.getLogger(__name__)


class SimulationService:
    """Glue between a ``SimulateRequest`` and the ``ScenarioGenerator``."""

    def __init__(self, generator: ScenarioGenerator, resolver: ResourceResolver) -> None:
        self._generator = generator
        self._resolver = resolver

    def simulate(self, request: SimulateRequest) -> SimulateResponse:
        resources = self._resolver.resolve_all(request.resource_ids)
        scenarios = self._generator.generate(
            request.action, resources, request.effective_params
        )
        logger.info(
            "Simulated %s for %d resources: %d scenarios.",
            request.action, len(request.resource_ids), len(scenarios),
        )
        return SimulateResponse(
            scenarios=scenarios,
            action_type_code=request.action.value,
            total_resources=len(request.resource_ids),
        )
