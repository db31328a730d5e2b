"""
Sizing rules for mail-server hosts.

Two rule tables exist, selected by the server generation found in the
product tag. All sizes are compared in MB; pagefile sizes are natively MB and
RAM is converted by the collector.
"""

import re

from fleetcheck.models.metrics import MetricsSnapshot
from fleetcheck.models.report import ComplianceResult

NEWER_GENERATION_PATTERN = r"Version 15\.2"

# Newer generation
_NEWER_RAM_MIN_MB = 128 * 1024
_NEWER_RAM_MAX_MB = 256 * 1024
_NEWER_MAX_LOGICAL_CORES = 48

# Older generations
_OLDER_RAM_MAX_MB = 192 * 1024
_OLDER_MAX_LOGICAL_CORES = 24
_OLDER_PAGEFILE_RAM_THRESHOLD_MB = 32 * 1024
_OLDER_PAGEFILE_CAPPED_MB = 32778
_OLDER_PAGEFILE_EXTRA_MB = 10


def is_newer_generation(product_tag: str, pattern: str = NEWER_GENERATION_PATTERN) -> bool:
    return re.search(pattern, product_tag or "") is not None


def expected_pagefile_mb(ram_total_mb: int, newer_generation: bool) -> float:
    """Pagefile size (initial == maximum) recommended for the given RAM size."""
    if newer_generation:
        return ram_total_mb / 4
    if ram_total_mb >= _OLDER_PAGEFILE_RAM_THRESHOLD_MB:
        return _OLDER_PAGEFILE_CAPPED_MB
    return ram_total_mb + _OLDER_PAGEFILE_EXTRA_MB


def evaluate(
    metrics: MetricsSnapshot,
    product_tag: str,
    pattern: str = NEWER_GENERATION_PATTERN,
) -> ComplianceResult:
    newer = is_newer_generation(product_tag, pattern)
    ram = metrics.ram_total_mb
    logical = metrics.logical_cores
    physical = metrics.physical_cores

    if newer:
        ram_ok = _NEWER_RAM_MIN_MB <= ram <= _NEWER_RAM_MAX_MB
        cores_ok = logical <= _NEWER_MAX_LOGICAL_CORES and logical == physical
    else:
        ram_ok = ram <= _OLDER_RAM_MAX_MB
        cores_ok = logical <= _OLDER_MAX_LOGICAL_CORES and logical == physical

    expected = expected_pagefile_mb(ram, newer)
    initial = metrics.pagefile.initial_size_mb
    maximum = metrics.pagefile.maximum_size_mb

    return ComplianceResult(
        newer_generation=newer,
        core_count_ok=cores_ok,
        ram_size_ok=ram_ok,
        pagefile_ok=initial == maximum == expected,
        physical_cores=physical,
        logical_cores=logical,
        ram_total_mb=ram,
        pagefile_initial_mb=initial,
        pagefile_maximum_mb=maximum,
        expected_pagefile_mb=expected,
    )
