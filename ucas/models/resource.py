"""
Resource facts consumed by the simulator.

``ResourceInfo``, ``PricingInfo`` and ``UsageMetrics`` are supplied by
collaborators (inventory listing, pricing lookup, metric lookup) and are
read-only inside the core.  A collaborator may return estimates when live
telemetry is unavailable; the simulator treats every field as an opaque fact
and never generates its own randomness.

``CloudAccount`` is the minimal account descriptor the recommendation
ranker needs to iterate provider accounts.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

RUNNING_STATES: frozenset[str] = frozenset({"running"})


class CloudAccount(BaseModel):
    """A connected provider account.

    Attributes:
        account_id: Provider-side or internal account identifier.
        provider: CSP code, e.g. ``"AWS"``, ``"GCP"``, ``"Azure"``, ``"NCP"``.
        active: Inactive accounts are skipped during discovery.
        default_region: Region listed when the account has no explicit scope.
        display_name: Optional human-readable label.
    """

    model_config = ConfigDict(frozen=True)

    account_id: str
    provider: str
    active: bool = True
    default_region: Optional[str] = None
    display_name: Optional[str] = None


class ResourceInfo(BaseModel):
    """A single billable cloud resource.

    Attributes:
        id: Provider resource id (``i-0abc…``, GCE instance id, …).
        provider: CSP code.
        service: Service code, e.g. ``"EC2"``, ``"GCE"``, ``"S3"``.
        region: Region or zone.
        project: Project / workspace the resource belongs to.
        tags: Provider tags (``env``, ``owner``, …).
        instance_type: Machine/instance type if applicable.
        name: Display name, falls back to ``id`` for rendering.
        state: Lifecycle state as reported by the provider (``"running"``…).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    provider: str
    service: str
    region: str
    project: str = "default"
    tags: dict[str, str] = Field(default_factory=dict)
    instance_type: Optional[str] = None
    name: Optional[str] = None
    state: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return (self.state or "").lower() in RUNNING_STATES


class PricingInfo(BaseModel):
    """Unit pricing for a resource.

    Attributes:
        unit: Billing unit (``"hour"``, ``"GB-month"``, …).
        unit_price: On-demand price per unit.
        commitment_applicable: Whether reserved/committed pricing exists.
        commitment_price: Committed unit price, if known.
        commitment_type: ``"RI"``, ``"SP"``, ``"CUD"`` … (informational).
    """

    model_config = ConfigDict(frozen=True)

    unit: str
    unit_price: float
    commitment_applicable: bool = False
    commitment_price: Optional[float] = None
    commitment_type: Optional[str] = None

    @field_validator("unit_price")
    @classmethod
    def validate_unit_price(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"unit_price must be non-negative, got {v}.")
        return v


class UsageMetrics(BaseModel):
    """Utilization summary for a resource.

    Utilization percentages (``avg``, ``p95``, ``p99``) are on a 0–100 scale.

    Attributes:
        avg: Mean utilization percentage.
        p95: 95th percentile utilization.
        p99: 99th percentile utilization.
        idle_ratio: Fraction of time the resource is idle (0–1).
        schedule_pattern: ``"weekdays"``, ``"business-hours"``, ``"24/7"``, …
        uptime_days: Days the resource has been running.
        network_in: Inbound traffic in MB.
        network_out: Outbound traffic in MB.
    """

    model_config = ConfigDict(frozen=True)

    avg: Optional[float] = None
    p95: Optional[float] = None
    p99: Optional[float] = None
    idle_ratio: Optional[float] = None
    schedule_pattern: Optional[str] = None
    uptime_days: Optional[int] = None
    network_in: Optional[float] = None
    network_out: Optional[float] = None

    @field_validator("idle_ratio")
    @classmethod
    def validate_idle_ratio(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0.0 <= v <= 1.0:
            raise ValueError(f"idle_ratio must be in [0.0, 1.0], got {v}.")
        return v
