from typing import Any, Dict, List, Mapping, Tuple

from fleetcheck.errors import RemoteQueryError
from fleetcheck.models.metrics import MetricsSnapshot, PagefileSettings
from fleetcheck.services.counters import CPU_COUNTER, MEMORY_COUNTER, CounterPair
from fleetcheck.services.remote import RemoteSession, records

_BYTES_PER_MB = 1024 * 1024

_PROCESSOR_QUERY = (
    "Get-CimInstance Win32_Processor | "
    "Select-Object NumberOfLogicalProcessors, NumberOfEnabledCore"
)
_MEMORY_QUERY = "Get-CimInstance Win32_PhysicalMemory | Select-Object Capacity"
_COMPUTER_SYSTEM_QUERY = (
    "Get-CimInstance Win32_ComputerSystem | Select-Object AutomaticManagedPagefile"
)
_PAGEFILE_QUERY = (
    "Get-CimInstance Win32_PageFileSetting | Select-Object Name, InitialSize, MaximumSize"
)


def _int_field(row: Dict[str, Any], key: str) -> int:
    value = row.get(key)
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise RemoteQueryError(f"Invalid value for {key}: {value!r}") from exc


def read_core_counts(session: RemoteSession) -> Tuple[int, int]:
    """Return (physical, logical) core counts summed over all sockets."""
    rows = records(session.run_ps_json(_PROCESSOR_QUERY), "processor")
    if not rows:
        raise RemoteQueryError(f"No processor records returned by {session.fqdn}")
    physical = sum(_int_field(row, "NumberOfEnabledCore") for row in rows)
    logical = sum(_int_field(row, "NumberOfLogicalProcessors") for row in rows)
    return physical, logical


def read_ram_total_mb(session: RemoteSession) -> int:
    rows = records(session.run_ps_json(_MEMORY_QUERY), "memory module")
    if not rows:
        raise RemoteQueryError(f"No memory module records returned by {session.fqdn}")
    total_bytes = sum(_int_field(row, "Capacity") for row in rows)
    return total_bytes // _BYTES_PER_MB


def sample_counters(session: RemoteSession, paths: List[str]) -> List[float]:
    """
    Take a single sample of the given counter paths.

    Get-Counter returns the samples in the order the paths were requested,
    so values are matched by position rather than by (lower-cased) path.
    """
    quoted = ",".join("'" + path.replace("'", "''") + "'" for path in paths)
    command = (
        f"(Get-Counter -Counter {quoted} -MaxSamples 1).CounterSamples | "
        "Select-Object Path, CookedValue"
    )
    rows = records(session.run_ps_json(command), "counter sample")
    if len(rows) != len(paths):
        raise RemoteQueryError(
            f"Expected {len(paths)} counter samples from {session.fqdn}, got {len(rows)}"
        )
    values: List[float] = []
    for row in rows:
        try:
            values.append(float(row["CookedValue"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteQueryError(f"Invalid counter sample {row!r}") from exc
    return values


def read_pagefile(session: RemoteSession) -> PagefileSettings:
    system_rows = records(session.run_ps_json(_COMPUTER_SYSTEM_QUERY), "computer system")
    if not system_rows:
        raise RemoteQueryError(f"No computer system record returned by {session.fqdn}")
    system_managed = bool(system_rows[0].get("AutomaticManagedPagefile"))

    # System-managed pagefiles have no Win32_PageFileSetting instance
    pagefiles = records(session.run_ps_json(_PAGEFILE_QUERY), "pagefile")
    return PagefileSettings(
        system_managed=system_managed,
        initial_size_mb=sum(_int_field(row, "InitialSize") for row in pagefiles),
        maximum_size_mb=sum(_int_field(row, "MaximumSize") for row in pagefiles),
    )


def collect(
    session: RemoteSession,
    counter_paths: Mapping[CounterPair, str],
) -> MetricsSnapshot:
    """
    Collect capacity, utilisation and pagefile facts from a reachable host.

    counter_paths must contain localized paths for CPU_COUNTER and
    MEMORY_COUNTER as produced by resolve_counter_names.
    """
    try:
        cpu_path = counter_paths[CPU_COUNTER]
        mem_path = counter_paths[MEMORY_COUNTER]
    except KeyError as exc:
        raise RemoteQueryError(f"No localized path for counter {exc.args[0]!r}") from exc

    physical, logical = read_core_counts(session)
    ram_total_mb = read_ram_total_mb(session)
    cpu_util, avail_mem = sample_counters(session, [cpu_path, mem_path])
    pagefile = read_pagefile(session)

    try:
        return MetricsSnapshot(
            physical_cores=physical,
            logical_cores=logical,
            ram_total_mb=ram_total_mb,
            cpu_util_percent=max(cpu_util, 0.0),
            avail_mem_mb=max(avail_mem, 0.0),
            pagefile=pagefile,
        )
    except ValueError as exc:
        raise RemoteQueryError(f"Implausible metrics from {session.fqdn}: {exc}") from exc
