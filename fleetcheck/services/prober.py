import socket
import subprocess
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional, Tuple

from fleetcheck.config import Settings
from fleetcheck.errors import RemoteQueryError
from fleetcheck.logger import get_logger
from fleetcheck.models.host import HostRecord, ProbeOutcome, ProbeStatus
from fleetcheck.services import remote

logger = get_logger(__name__)


def _ping(host: str, timeout_seconds: int = 1) -> Tuple[bool, Optional[str]]:
    """
    Send a single ICMP echo request to host.

    This implementation assumes a Linux-like 'ping' command with options:
      -c <count>  : number of echo requests
      -W <timeout>: timeout in seconds for the reply

    Returns (is_up, error). error is only set if ping itself could not run.
    """
    try:
        result = subprocess.run(
            ["ping", "-c", "1", "-W", str(timeout_seconds), host],
            check=False,  # wir werten den Rückgabecode selbst aus
            capture_output=True,
            text=True,
            timeout=timeout_seconds + 5,
        )
    except FileNotFoundError:
        return False, "ping binary not found on host system"
    except (subprocess.TimeoutExpired, OSError) as exc:
        return False, f"ping could not be executed: {exc}"

    # Rückgabecode 0 bedeutet: Antwort erhalten
    return result.returncode == 0, None


def _resolve(fqdn: str, timeout_seconds: float = 5.0) -> Optional[str]:
    """
    Resolve fqdn to an IPv4 address, giving up after timeout_seconds.

    socket.gethostbyname has no timeout of its own, so the lookup runs in a
    helper thread; a lookup that does not finish in time counts as unresolved.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dns")
    future = executor.submit(socket.gethostbyname, fqdn)
    try:
        return future.result(timeout=timeout_seconds)
    except FutureTimeoutError:
        logger.info("dns lookup timed out", host=fqdn, timeout=timeout_seconds)
        return None
    except (socket.gaierror, UnicodeError):
        return None
    finally:
        executor.shutdown(wait=False)


def _management_available(fqdn: str, settings: Settings) -> bool:
    try:
        remote.open_session(fqdn, settings).handshake()
    except RemoteQueryError as exc:
        logger.info("winrm handshake failed", host=fqdn, error=str(exc))
        return False
    except Exception as exc:
        # e.g. a non-WinRM HTTP service on the port answering with garbage
        logger.warning("winrm handshake raised unexpectedly", host=fqdn, error=repr(exc))
        return False
    return True


def _classify(host: HostRecord, settings: Settings) -> ProbeOutcome:
    is_up, error = _ping(host.fqdn, settings.ping_timeout_seconds)

    if not is_up:
        if error is not None:
            return ProbeOutcome(status=ProbeStatus.UNREACHABLE, error=error)
        resolved_ip = _resolve(host.fqdn, settings.dns_timeout_seconds)
        if resolved_ip is None:
            return ProbeOutcome(status=ProbeStatus.UNRESOLVABLE_NAME)
        return ProbeOutcome(status=ProbeStatus.UNREACHABLE, resolved_ip=resolved_ip)

    if not _management_available(host.fqdn, settings):
        return ProbeOutcome(status=ProbeStatus.MANAGEMENT_UNAVAILABLE)

    return ProbeOutcome(status=ProbeStatus.REACHABLE)


def probe_host(host: HostRecord, settings: Settings) -> ProbeOutcome:
    """
    Classify a host as reachable, unreachable, unresolvable or lacking
    remote management. Never raises for network conditions; any unexpected
    fault is reported as unreachable without an address.
    """
    try:
        return _classify(host, settings)
    except Exception as exc:
        logger.warning("probe failed unexpectedly", host=host.name, error=repr(exc))
        error = str(exc) or type(exc).__name__
        return ProbeOutcome(status=ProbeStatus.UNREACHABLE, error=error)
