"""
Collaborator interfaces consumed by the simulator core.

The core never talks to a cloud SDK directly.  Listing, pricing and metric
lookups are supplied by objects satisfying these protocols; each may return
estimates when live telemetry is unavailable, and the core treats every value
as an opaque fact.

Implementations may raise on failure.  The generator and the ranker isolate
failures per resource and per account respectively.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from ucas.models.resource import CloudAccount, PricingInfo, ResourceInfo, UsageMetrics


@runtime_checkable
class InventoryProvider(Protocol):
    """Lists connected accounts and the resources inside each one."""

    def list_accounts(self) -> Sequence[CloudAccount]:
        ...

    def list_resources(self, account: CloudAccount) -> Sequence[ResourceInfo]:
        ...


@runtime_checkable
class PricingProvider(Protocol):
    """Looks up unit pricing for a resource."""

    def get_pricing(self, resource: ResourceInfo) -> PricingInfo:
        ...


@runtime_checkable
class MetricsProvider(Protocol):
    """Looks up a utilization summary for a resource."""

    def get_usage_metrics(self, resource: ResourceInfo) -> UsageMetrics:
        ...
