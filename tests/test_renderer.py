import json

from rich.console import Console

from fleetcheck.models.host import HostRecord, ProbeOutcome, ProbeStatus
from fleetcheck.models.report import ReportRow
from fleetcheck.services import compliance, renderer


def collected_row(make_metrics, **metric_overrides):
    host = HostRecord(
        name="MBX01", fqdn="mbx01.corp.example", product_tag="Version 15.2 (Build 1118.7)"
    )
    metrics = make_metrics(**metric_overrides)
    return ReportRow(
        host=host,
        probe=ProbeOutcome(status=ProbeStatus.REACHABLE),
        metrics=metrics,
        compliance=compliance.evaluate(metrics, host.product_tag),
    )


def failed_row():
    outcome = ProbeOutcome(status=ProbeStatus.MANAGEMENT_UNAVAILABLE)
    return ReportRow(
        host=HostRecord(name="MBX02", fqdn="mbx02.corp.example"),
        probe=outcome,
        failure_stage="probe",
        comment=outcome.reason,
    )


def test_collected_row_cells_are_flagged(make_metrics, settings):
    row = collected_row(make_metrics, physical_cores=24, logical_cores=48, cpu_util_percent=55.0)

    cells = renderer._row_cells(row, settings)

    assert len(cells) == len(renderer.COLUMNS)
    assert cells[0] == "MBX01"
    assert cells[2] == "[red]48[/red]"
    assert cells[3] == "[green]192[/green]"
    assert cells[4] == "[red]55.0[/red]"
    assert cells[10] == "[green]OK[/green]"
    assert cells[-1] == ""


def test_memory_threshold_flags_low_available_memory(make_metrics, settings):
    low = collected_row(make_metrics, avail_mem_mb=196608 * 0.1)
    high = collected_row(make_metrics, avail_mem_mb=196608 * 0.5)

    assert renderer.avail_mem_ok(low, settings) is False
    assert renderer.avail_mem_ok(high, settings) is True


def test_failed_row_only_shows_comment(settings):
    cells = renderer._row_cells(failed_row(), settings)

    assert cells[0] == "MBX02"
    assert all(cell == "" for cell in cells[1:-1])
    assert "WinRM is not available" in cells[-1]


def test_print_report_renders_all_hosts(make_metrics, settings):
    console = Console(record=True, width=250, no_color=True)

    renderer.print_report([collected_row(make_metrics), failed_row()], settings, console=console)

    output = console.export_text()
    assert "MBX01" in output
    assert "MBX02" in output
    assert "Mail server sizing report" in output


def test_write_json_report(tmp_path, make_metrics):
    output_path = tmp_path / "report.json"

    renderer.write_json_report([collected_row(make_metrics), failed_row()], output_path)

    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["schema_version"] == renderer.SCHEMA_VERSION
    assert [row["host"]["name"] for row in data["rows"]] == ["MBX01", "MBX02"]
    assert data["rows"][1]["probe"]["status"] == "management_unavailable"
