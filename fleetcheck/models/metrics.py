from pydantic import BaseModel, Field


class PagefileSettings(BaseModel):
    """Pagefile configuration of a host."""

    system_managed: bool = Field(
        ...,
        description="True if Windows manages the pagefile size automatically.",
    )
    initial_size_mb: int = Field(0, ge=0, description="Configured initial size in MB")
    maximum_size_mb: int = Field(0, ge=0, description="Configured maximum size in MB")


class MetricsSnapshot(BaseModel):
    """Point-in-time capacity, utilisation and pagefile facts of one host."""

    physical_cores: int = Field(..., ge=0, description="Sum of enabled physical cores")
    logical_cores: int = Field(..., ge=0, description="Sum of logical processors")
    ram_total_mb: int = Field(..., ge=0, description="Installed memory in MB")
    cpu_util_percent: float = Field(
        ...,
        ge=0,
        description="Single CPU busy sample in percent; may briefly exceed 100",
    )
    avail_mem_mb: float = Field(..., ge=0, description="Available memory in MB")
    pagefile: PagefileSettings

    @property
    def ram_total_gb(self) -> float:
        return self.ram_total_mb / 1024

    @property
    def avail_mem_gb(self) -> float:
        return self.avail_mem_mb / 1024

    @property
    def avail_mem_percent(self) -> float:
        if self.ram_total_mb == 0:
            return 0.0
        return self.avail_mem_mb / self.ram_total_mb * 100
