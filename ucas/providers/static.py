"""
Offline pricing and metric collaborators.

``StaticPricingProvider`` answers from a bundled on-demand price table (USD per
hour).  Committed pricing is modelled as a flat discount on the on-demand
price.  Object-storage services are priced per GB-month and are never
commitment-eligible.

``EstimatedMetricsProvider`` returns one fixed, deterministic utilization
estimate for every resource.  It stands in for a telemetry backend when none
is connected and never draws random numbers, so simulation output stays
reproducible.

Usage::

    pricing = StaticPricingProvider.from_config(config.inventory)
    metrics = EstimatedMetricsProvider()
    info = pricing.get_pricing(resource)
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from ucas.config import InventoryConfig
from ucas.models.resource import PricingInfo, ResourceInfo, UsageMetrics
from ucas.taxonomy.action_taxonomy import PricingUnit

logger = logging.getLogger(__name__)

# ── Price table ───────────────────────────────────────────────────────────────

EC2_HOURLY_PRICES: dict[str, float] = {
    # Burstable
    "t2.micro":  0.0116,
    "t2.small":  0.023,
    "t2.medium": 0.0464,
    "t3.micro":  0.0104,
    "t3.small":  0.0208,
    "t3.medium": 0.0416,
    "t3.large":  0.0832,
    "t4g.micro": 0.0084,
    "t4g.small": 0.0168,
    # General purpose
    "m5.large":          0.096,
    "m5.xlarge":         0.192,
    "m5.2xlarge":        0.384,
    "m6i.large":         0.108,
    "m6i.xlarge":        0.216,
    "m6i.2xlarge":       0.432,
    "m7i.large":         0.120,
    "m7i.xlarge":        0.240,
    "m7i.2xlarge":       0.480,
    "m7i-flex.large":    0.108,
    "m7i-flex.xlarge":   0.216,
    "m7i-flex.2xlarge":  0.432,
    # Compute optimized
    "c5.large":   0.085,
    "c5.xlarge":  0.17,
    "c5.2xlarge": 0.34,
    "c6i.large":  0.085,
    "c6i.xlarge": 0.17,
    "c7i.large":  0.095,
    "c7i.xlarge": 0.19,
    # Memory optimized
    "r5.large":   0.126,
    "r5.xlarge":  0.252,
    "r6i.large":  0.1512,
    "r6i.xlarge": 0.3024,
}

STORAGE_SERVICES: frozenset[str] = frozenset({"S3", "GCS", "BLOB", "OBJECT_STORAGE", "EBS"})


class StaticPricingProvider:
    """Price lookup backed by an in-memory table.

    Args:
        hourly_prices: Instance type → on-demand USD/hour.
        default_hourly_price: Price for unknown or missing instance types.
        storage_gb_month_price: Price per GB-month for storage services.
        commitment_discount: Committed price as a fraction of on-demand.
    """

    def __init__(
        self,
        hourly_prices: Optional[Mapping[str, float]] = None,
        default_hourly_price: float = 0.15,
        storage_gb_month_price: float = 0.023,
        commitment_discount: float = 0.5,
    ) -> None:
        self._hourly_prices = dict(EC2_HOURLY_PRICES if hourly_prices is None else hourly_prices)
        self._default_hourly_price = default_hourly_price
        self._storage_gb_month_price = storage_gb_month_price
        self._commitment_discount = commitment_discount

    @classmethod
    def from_config(cls, config: InventoryConfig) -> "StaticPricingProvider":
        return cls(
            default_hourly_price=config.default_hourly_price,
            storage_gb_month_price=config.storage_gb_month_price,
            commitment_discount=config.commitment_discount,
        )

    def hourly_price(self, instance_type: Optional[str]) -> float:
        """On-demand hourly price for ``instance_type`` (default if unknown)."""
        if instance_type and instance_type in self._hourly_prices:
            return self._hourly_prices[instance_type]
        if instance_type:
            logger.debug(
                "No list price for instance type %r; using default %.4f/h.",
                instance_type, self._default_hourly_price,
            )
        return self._default_hourly_price

    def get_pricing(self, resource: ResourceInfo) -> PricingInfo:
        if resource.service.upper() in STORAGE_SERVICES:
            return PricingInfo(
                unit=PricingUnit.GB_MONTH,
                unit_price=self._storage_gb_month_price,
                commitment_applicable=False,
            )

        price = self.hourly_price(resource.instance_type)
        return PricingInfo(
            unit=PricingUnit.HOUR,
            unit_price=price,
            commitment_applicable=True,
            commitment_price=price * self._commitment_discount,
            commitment_type="RI",
        )


class EstimatedMetricsProvider:
    """Returns the same conservative utilization estimate for every resource."""

    def __init__(self, estimate: Optional[UsageMetrics] = None) -> None:
        self._estimate = estimate if estimate is not None else default_usage_estimate()

    def get_usage_metrics(self, resource: ResourceInfo) -> UsageMetrics:
        return self._estimate


def default_usage_estimate() -> UsageMetrics:
    """Baseline estimate for a dev workload on a weekday schedule."""
    return UsageMetrics(
        avg=30.0,
        p95=60.0,
        p99=80.0,
        idle_ratio=0.6,
        schedule_pattern="weekdays",
        uptime_days=365,
    )
