from fleetcheck.services import compliance

NEWER_TAG = "Version 15.2 (Build 1118.7)"
OLDER_TAG = "Version 15.1 (Build 2507.6)"


def test_newer_generation_example_is_fully_compliant(make_metrics):
    metrics = make_metrics(
        ram_total_mb=196608,
        physical_cores=48,
        logical_cores=48,
        initial_size_mb=49152,
        maximum_size_mb=49152,
    )

    result = compliance.evaluate(metrics, NEWER_TAG)

    assert result.newer_generation is True
    assert result.core_count_ok is True
    assert result.ram_size_ok is True
    assert result.pagefile_ok is True
    assert result.expected_pagefile_mb == 49152


def test_newer_generation_ram_bounds(make_metrics):
    too_small = compliance.evaluate(make_metrics(ram_total_mb=65536), NEWER_TAG)
    lower_edge = compliance.evaluate(make_metrics(ram_total_mb=131072), NEWER_TAG)
    upper_edge = compliance.evaluate(make_metrics(ram_total_mb=262144), NEWER_TAG)
    too_large = compliance.evaluate(make_metrics(ram_total_mb=393216), NEWER_TAG)

    assert too_small.ram_size_ok is False
    assert lower_edge.ram_size_ok is True
    assert upper_edge.ram_size_ok is True
    assert too_large.ram_size_ok is False


def test_newer_generation_core_rules(make_metrics):
    hyperthreading = compliance.evaluate(
        make_metrics(physical_cores=24, logical_cores=48), NEWER_TAG
    )
    too_many = compliance.evaluate(
        make_metrics(physical_cores=64, logical_cores=64), NEWER_TAG
    )

    assert hyperthreading.core_count_ok is False
    assert too_many.core_count_ok is False


def test_newer_generation_pagefile_uses_quarter_of_ram_without_floor(make_metrics):
    metrics = make_metrics(ram_total_mb=65536, initial_size_mb=16384, maximum_size_mb=16384)

    result = compliance.evaluate(metrics, NEWER_TAG)

    assert result.pagefile_ok is True
    assert result.ram_size_ok is False


def test_older_generation_small_ram_pagefile_is_ram_plus_ten(make_metrics):
    metrics = make_metrics(
        ram_total_mb=16384,
        physical_cores=8,
        logical_cores=8,
        initial_size_mb=16394,
        maximum_size_mb=16394,
    )

    result = compliance.evaluate(metrics, OLDER_TAG)

    assert result.newer_generation is False
    assert result.pagefile_ok is True
    assert result.core_count_ok is True
    assert result.ram_size_ok is True


def test_older_generation_large_ram_pagefile_is_capped(make_metrics):
    metrics = make_metrics(
        ram_total_mb=65536,
        physical_cores=16,
        logical_cores=16,
        initial_size_mb=32778,
        maximum_size_mb=32778,
    )

    result = compliance.evaluate(metrics, OLDER_TAG)

    assert result.pagefile_ok is True
    assert result.expected_pagefile_mb == 32778


def test_older_generation_limits(make_metrics):
    result = compliance.evaluate(
        make_metrics(ram_total_mb=262144, physical_cores=32, logical_cores=32),
        OLDER_TAG,
    )

    assert result.ram_size_ok is False
    assert result.core_count_ok is False


def test_pagefile_requires_initial_equal_to_maximum(make_metrics):
    metrics = make_metrics(initial_size_mb=49152, maximum_size_mb=65536)

    result = compliance.evaluate(metrics, NEWER_TAG)

    assert result.pagefile_ok is False
    # RAM and cores are judged independently
    assert result.ram_size_ok is True
    assert result.core_count_ok is True


def test_system_managed_pagefile_is_not_compliant(make_metrics):
    metrics = make_metrics(system_managed=True, initial_size_mb=0, maximum_size_mb=0)

    assert compliance.evaluate(metrics, NEWER_TAG).pagefile_ok is False


def test_evaluate_is_deterministic(make_metrics):
    metrics = make_metrics(ram_total_mb=98304, logical_cores=32, physical_cores=16)

    assert compliance.evaluate(metrics, OLDER_TAG) == compliance.evaluate(metrics, OLDER_TAG)


def test_generation_pattern_is_configurable(make_metrics):
    metrics = make_metrics()

    result = compliance.evaluate(metrics, "Version 16.0 (Build 1)", pattern=r"Version 1[56]\.")

    assert result.newer_generation is True
    assert compliance.is_newer_generation("", compliance.NEWER_GENERATION_PATTERN) is False
