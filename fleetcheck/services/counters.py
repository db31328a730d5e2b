from typing import Dict, Iterable, Optional, Tuple

from fleetcheck.config import Settings
from fleetcheck.errors import RemoteQueryError
from fleetcheck.models.counters import CounterMap
from fleetcheck.services.remote import RemoteSession

CounterPair = Tuple[str, str]

CPU_COUNTER: CounterPair = ("Processor", "% Processor Time")
MEMORY_COUNTER: CounterPair = ("Memory", "Available MBytes")
DEFAULT_COUNTERS = (CPU_COUNTER, MEMORY_COUNTER)

# Instance qualifier per performance object; objects without an entry have
# a single, unnamed instance.
_INSTANCES: Dict[str, str] = {
    "Processor": "_Total",
}

_PERFLIB_KEY = r"HKLM:\SOFTWARE\Microsoft\Windows NT\CurrentVersion\Perflib"


def _perflib_command(language_key: str) -> str:
    return (
        f"(Get-ItemProperty -Path '{_PERFLIB_KEY}\\{language_key}' -Name Counter).Counter"
    )


def _string_table(session: RemoteSession, language_key: str) -> list:
    rows = session.run_ps_json(_perflib_command(language_key))
    if not rows or not all(isinstance(row, str) for row in rows):
        raise RemoteQueryError(
            f"Perflib counter table {language_key!r} on {session.fqdn} is empty or malformed"
        )
    return rows


def fetch_counter_map(session: RemoteSession, settings: Settings) -> CounterMap:
    """
    Read the reference-language and the display-language counter tables from
    the host's Perflib registry and pair them into a CounterMap.
    """
    reference = _string_table(session, settings.perflib_reference_language)
    localized = _string_table(session, "CurrentLanguage")
    try:
        return CounterMap(reference=reference, localized=localized)
    except ValueError as exc:
        raise RemoteQueryError(
            f"Inconsistent counter tables on {session.fqdn}: {exc}"
        ) from exc


def counter_path(obj: str, counter: str, instance: Optional[str] = None) -> str:
    if instance:
        return f"\\{obj}({instance})\\{counter}"
    return f"\\{obj}\\{counter}"


def resolve_counter_names(
    counter_map: CounterMap,
    canonical_pairs: Iterable[CounterPair] = DEFAULT_COUNTERS,
) -> Dict[CounterPair, str]:
    """
    Map canonical (object, counter) pairs to localized counter paths usable
    with Get-Counter on that host.

    Raises CounterResolutionError if any name is missing from the reference
    table; a partial result is never returned.
    """
    paths: Dict[CounterPair, str] = {}
    for obj, counter in canonical_pairs:
        localized_obj = counter_map.translate(obj)
        localized_counter = counter_map.translate(counter)
        paths[(obj, counter)] = counter_path(
            localized_obj, localized_counter, _INSTANCES.get(obj)
        )
    return paths
