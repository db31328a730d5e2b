from typing import Optional

from pydantic import BaseModel, Field

from fleetcheck.models.host import HostRecord, ProbeOutcome
from fleetcheck.models.metrics import MetricsSnapshot


class ComplianceResult(BaseModel):
    """Sizing verdicts for one host plus the values that produced them."""

    newer_generation: bool = Field(..., description="True if the newer rule set was applied.")
    core_count_ok: bool
    ram_size_ok: bool
    pagefile_ok: bool

    physical_cores: int = Field(..., ge=0)
    logical_cores: int = Field(..., ge=0)
    ram_total_mb: int = Field(..., ge=0)
    pagefile_initial_mb: int = Field(..., ge=0)
    pagefile_maximum_mb: int = Field(..., ge=0)
    expected_pagefile_mb: float = Field(
        ...,
        ge=0,
        description="Pagefile size the rule set expects for initial and maximum size",
    )


class ReportRow(BaseModel):
    """One line of the fleet report, either fully collected or failed at a stage."""

    host: HostRecord
    probe: ProbeOutcome
    metrics: Optional[MetricsSnapshot] = None
    compliance: Optional[ComplianceResult] = None
    failure_stage: Optional[str] = Field(
        None,
        description="Stage the host failed at (probe, counter resolution, remote query).",
    )
    comment: Optional[str] = Field(
        None,
        description="Failure reason shown instead of metrics.",
    )

    @property
    def collected(self) -> bool:
        return self.metrics is not None and self.compliance is not None
