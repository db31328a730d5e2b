import pytest

from fleetcheck.config import Settings
from fleetcheck.models.host import HostRecord
from fleetcheck.models.metrics import MetricsSnapshot, PagefileSettings

NEWER_TAG = "Version 15.2 (Build 1118.7)"
OLDER_TAG = "Version 15.1 (Build 2507.6)"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        winrm_username="CORP\\svc-report",
        winrm_password="secret",
        fleet_hosts=[
            f"mbx01.corp.example|{NEWER_TAG}",
            f"mbx02.corp.example|{OLDER_TAG}",
        ],
    )


@pytest.fixture
def make_host():
    def _make(name: str = "MBX01", product_tag: str = NEWER_TAG) -> HostRecord:
        return HostRecord(
            name=name,
            fqdn=f"{name.lower()}.corp.example",
            product_tag=product_tag,
        )

    return _make


@pytest.fixture
def make_metrics():
    def _make(
        ram_total_mb: int = 196608,
        physical_cores: int = 48,
        logical_cores: int = 48,
        initial_size_mb: int = 49152,
        maximum_size_mb: int = 49152,
        system_managed: bool = False,
        cpu_util_percent: float = 12.5,
        avail_mem_mb: float = 98304.0,
    ) -> MetricsSnapshot:
        return MetricsSnapshot(
            physical_cores=physical_cores,
            logical_cores=logical_cores,
            ram_total_mb=ram_total_mb,
            cpu_util_percent=cpu_util_percent,
            avail_mem_mb=avail_mem_mb,
            pagefile=PagefileSettings(
                system_managed=system_managed,
                initial_size_mb=initial_size_mb,
                maximum_size_mb=maximum_size_mb,
            ),
        )

    return _make
