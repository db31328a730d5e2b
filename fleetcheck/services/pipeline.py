from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence

from fleetcheck.config import Settings
from fleetcheck.errors import HostCollectionError
from fleetcheck.logger import get_logger
from fleetcheck.models.host import HostRecord, ProbeOutcome, ProbeStatus
from fleetcheck.models.report import ReportRow
from fleetcheck.services import collector, compliance, counters, directory, prober, remote

logger = get_logger(__name__)

PROBE_STAGE = "probe"


def _log_progress(done: int, total: int, host: HostRecord) -> None:
    percent = round(done / total * 100) if total else 100
    logger.info("host assessed", host=host.name, done=done, total=total, percent=percent)


def assess_host(host: HostRecord, settings: Settings) -> ReportRow:
    """
    Probe, collect and evaluate a single host.

    Per-host failures are turned into a ReportRow carrying the failing stage;
    the returned row is always complete and no exception escapes.
    """
    try:
        outcome = prober.probe_host(host, settings)
    except Exception as exc:
        logger.exception("probe raised unexpectedly", host=host.name)
        outcome = ProbeOutcome(
            status=ProbeStatus.UNREACHABLE, error=str(exc) or type(exc).__name__
        )

    if not outcome.is_reachable:
        logger.info("host skipped", host=host.name, status=outcome.status.value)
        return ReportRow(
            host=host,
            probe=outcome,
            failure_stage=PROBE_STAGE,
            comment=outcome.reason,
        )

    try:
        session = remote.open_session(host.fqdn, settings)
        counter_map = counters.fetch_counter_map(session, settings)
        paths = counters.resolve_counter_names(counter_map, counters.DEFAULT_COUNTERS)
        metrics = collector.collect(session, paths)
        result = compliance.evaluate(metrics, host.product_tag, settings.newer_generation_pattern)
    except HostCollectionError as exc:
        logger.warning("collection failed", host=host.name, stage=exc.stage, error=exc.message)
        return ReportRow(
            host=host,
            probe=outcome,
            failure_stage=exc.stage,
            comment=f"Collection failed ({exc.stage}): {exc.message}",
        )
    except Exception as exc:
        # transport, auth or payload faults the remote layer does not wrap
        logger.exception("collection raised unexpectedly", host=host.name)
        stage = HostCollectionError.stage
        return ReportRow(
            host=host,
            probe=outcome,
            failure_stage=stage,
            comment=f"Collection failed ({stage}): {str(exc) or type(exc).__name__}",
        )

    return ReportRow(host=host, probe=outcome, metrics=metrics, compliance=result)


def build_report(hosts: Sequence[HostRecord], settings: Settings) -> List[ReportRow]:
    """
    Assess all hosts and return one row per host in directory order.

    With settings.max_workers > 1 hosts are assessed in a thread pool; each
    host owns one pre-allocated slot so completion order does not matter.
    """
    total = len(hosts)
    rows: List[Optional[ReportRow]] = [None] * total

    if settings.max_workers <= 1 or total <= 1:
        for index, host in enumerate(hosts):
            rows[index] = assess_host(host, settings)
            _log_progress(index + 1, total, host)
    else:
        pool = ThreadPoolExecutor(max_workers=settings.max_workers)
        try:
            futures = {
                pool.submit(assess_host, host, settings): index
                for index, host in enumerate(hosts)
            }
            for done, future in enumerate(as_completed(futures), start=1):
                index = futures[future]
                rows[index] = future.result()
                _log_progress(done, total, hosts[index])
        except BaseException:
            pool.shutdown(wait=False, cancel_futures=True)
            raise
        pool.shutdown(wait=True)

    return [row for row in rows if row is not None]


def run_report(settings: Settings) -> List[ReportRow]:
    """Enumerate the directory and assess every host.

    Raises DirectoryUnavailableError if the directory cannot be read.
    """
    hosts = directory.get_directory(settings).list_hosts()
    logger.info("directory enumerated", hosts=len(hosts))
    return build_report(hosts, settings)
