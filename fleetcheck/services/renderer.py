import datetime as dt
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from fleetcheck.config import Settings
from fleetcheck.models.report import ReportRow

SCHEMA_VERSION = "1.0.0"

COLUMNS = [
    "Server",
    "Phys. cores",
    "Log. cores",
    "RAM GB",
    "CPU %",
    "Avail. mem GB",
    "Avail. mem %",
    "PF auto",
    "PF initial MB",
    "PF maximum MB",
    "PF OK",
    "Comment",
]


def _flag(text: str, ok: bool) -> str:
    colour = "green" if ok else "red"
    return f"[{colour}]{text}[/{colour}]"


def cpu_ok(row: ReportRow, settings: Settings) -> bool:
    return row.metrics is not None and row.metrics.cpu_util_percent < settings.cpu_alert_percent


def avail_mem_ok(row: ReportRow, settings: Settings) -> bool:
    return (
        row.metrics is not None
        and row.metrics.avail_mem_percent >= settings.avail_mem_alert_percent
    )


def _row_cells(row: ReportRow, settings: Settings) -> List[str]:
    name = escape(row.host.name)
    if not row.collected:
        return [name] + [""] * (len(COLUMNS) - 2) + [escape(row.comment or "")]

    metrics = row.metrics
    result = row.compliance
    pagefile = metrics.pagefile
    if result.pagefile_ok:
        pagefile_verdict = "OK"
    else:
        pagefile_verdict = f"expected {result.expected_pagefile_mb:.0f}"
    return [
        name,
        str(metrics.physical_cores),
        _flag(str(metrics.logical_cores), result.core_count_ok),
        _flag(f"{metrics.ram_total_gb:.0f}", result.ram_size_ok),
        _flag(f"{metrics.cpu_util_percent:.1f}", cpu_ok(row, settings)),
        f"{metrics.avail_mem_gb:.1f}",
        _flag(f"{metrics.avail_mem_percent:.0f}", avail_mem_ok(row, settings)),
        "yes" if pagefile.system_managed else "no",
        str(pagefile.initial_size_mb),
        str(pagefile.maximum_size_mb),
        _flag(pagefile_verdict, result.pagefile_ok),
        "",
    ]


def build_table(rows: Sequence[ReportRow], settings: Settings) -> Table:
    table = Table(title="Mail server sizing report")
    for column in COLUMNS:
        table.add_column(column, justify="left" if column in ("Server", "Comment") else "right")
    for row in rows:
        table.add_row(*_row_cells(row, settings))
    return table


def print_report(
    rows: Sequence[ReportRow],
    settings: Settings,
    console: Optional[Console] = None,
) -> None:
    console = console or Console()
    console.print(build_table(rows, settings))


def build_json_report(rows: Sequence[ReportRow]) -> Dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "generated_at": dt.datetime.now(dt.timezone.utc).isoformat(),
        "rows": [row.model_dump(mode="json") for row in rows],
    }


def write_json_report(rows: Sequence[ReportRow], output_path: Path) -> None:
    """
    Schreibt den Report als JSON-Datei.
    """
    output_path.write_text(
        json.dumps(build_json_report(rows), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
