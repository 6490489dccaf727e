"""
Scenario simulation: turns resource facts into projected cost scenarios.

Modules
-------
generator : SCENARIO_GENERATORS dispatch table (one function per ActionType)
            + ScenarioGenerator, which isolates failures per resource.
service   : SimulationService — SimulateRequest in, SimulateResponse out.
"""
