from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class HostRecord(BaseModel):
    """Identity of a candidate mail server as read from the directory."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Display name of the server, e.g. MBX01")
    fqdn: str = Field(..., description="Fully-qualified DNS name, e.g. mbx01.corp.example")
    product_tag: str = Field(
        "",
        description="Product/version tag identifying the server generation, "
        "e.g. 'Version 15.2 (Build 1118.7)'",
    )


class ProbeStatus(str, Enum):
    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"
    UNRESOLVABLE_NAME = "unresolvable_name"
    MANAGEMENT_UNAVAILABLE = "management_unavailable"


class ProbeOutcome(BaseModel):
    """Result of the reachability assessment for a single host."""

    model_config = ConfigDict(frozen=True)

    status: ProbeStatus = Field(..., description="Exactly one probe verdict per host and run.")
    resolved_ip: Optional[str] = Field(
        None,
        description="Address the FQDN resolved to; only set for unreachable hosts.",
    )
    error: Optional[str] = Field(
        None,
        description="Optional detail if the probe itself could not be carried out.",
    )

    @model_validator(mode="after")
    def _resolved_ip_only_when_unreachable(self) -> "ProbeOutcome":
        if self.resolved_ip is not None and self.status is not ProbeStatus.UNREACHABLE:
            raise ValueError("resolved_ip is only meaningful for unreachable hosts")
        return self

    @property
    def is_reachable(self) -> bool:
        return self.status is ProbeStatus.REACHABLE

    @property
    def reason(self) -> str:
        """Human-readable failure reason for the report comment column."""
        if self.status is ProbeStatus.REACHABLE:
            return ""
        if self.status is ProbeStatus.UNREACHABLE:
            if self.resolved_ip:
                return f"Host not responding to ping (resolves to {self.resolved_ip})"
            if self.error:
                return f"Host not responding to ping ({self.error})"
            return "Host not responding to ping"
        if self.status is ProbeStatus.UNRESOLVABLE_NAME:
            return "DNS name cannot be resolved"
        return "Host responds to ping but WinRM is not available"
