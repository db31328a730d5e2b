"""Directory sources for the list of mail servers to report on.

HostDirectory is an ABC so tests and the static configuration can stand in
for Active Directory. LdapDirectory uses ldap3:
  1. Bind as the configured service account
  2. Search the configuration naming context for Exchange server objects
  3. Derive name, FQDN and product tag from name, networkAddress and
     serialNumber
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ldap3 import Connection, Server, Tls
from ldap3.core.exceptions import LDAPException

from fleetcheck.config import Settings
from fleetcheck.errors import DirectoryUnavailableError
from fleetcheck.logger import get_logger
from fleetcheck.models.host import HostRecord

logger = get_logger(__name__)

_SERVER_FILTER = "(objectClass=msExchExchangeServer)"
_SERVER_ATTRIBUTES = ["name", "networkAddress", "serialNumber"]
_TCP_ADDRESS_PREFIX = "ncacn_ip_tcp:"


class HostDirectory(ABC):
    @abstractmethod
    def list_hosts(self) -> List[HostRecord]:
        """Return the candidate hosts in directory order.

        Raises DirectoryUnavailableError if the directory cannot be read.
        """


def parse_host_entry(entry: str) -> HostRecord:
    """Parse a static 'fqdn|product tag' entry; the tag is optional."""
    fqdn, _, product_tag = entry.partition("|")
    fqdn = fqdn.strip()
    if not fqdn:
        raise ValueError(f"Host entry without FQDN: {entry!r}")
    return HostRecord(
        name=fqdn.split(".", 1)[0],
        fqdn=fqdn,
        product_tag=product_tag.strip(),
    )


class StaticDirectory(HostDirectory):
    def __init__(self, entries: List[str]) -> None:
        self._entries = entries

    def list_hosts(self) -> List[HostRecord]:
        try:
            return [parse_host_entry(entry) for entry in self._entries]
        except ValueError as exc:
            raise DirectoryUnavailableError(str(exc)) from exc


def _first(attributes: Dict[str, list], key: str) -> str:
    values = attributes.get(key) or []
    return str(values[0]) if values else ""


def _fqdn_from_network_address(addresses: List[str]) -> Optional[str]:
    for address in addresses:
        if str(address).lower().startswith(_TCP_ADDRESS_PREFIX):
            return str(address)[len(_TCP_ADDRESS_PREFIX):]
    return None


class LdapDirectory(HostDirectory):
    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def _connect(self) -> Connection:
        settings = self._settings
        tls = Tls() if settings.ldap_use_ssl else None
        srv = Server(
            settings.ldap_host,
            port=settings.ldap_port,
            use_ssl=settings.ldap_use_ssl,
            tls=tls,
            connect_timeout=settings.remote_timeout_seconds,
        )
        return Connection(
            srv,
            user=settings.ldap_bind_dn or None,
            password=settings.ldap_bind_password or None,
            auto_bind=True,
            receive_timeout=settings.remote_timeout_seconds,
        )

    def list_hosts(self) -> List[HostRecord]:
        try:
            conn = self._connect()
            try:
                conn.search(
                    search_base=self._settings.ldap_base_dn,
                    search_filter=_SERVER_FILTER,
                    attributes=_SERVER_ATTRIBUTES,
                )
                entries = list(conn.entries)
            finally:
                conn.unbind()
        except LDAPException as exc:
            raise DirectoryUnavailableError(f"Cannot enumerate mail servers: {exc}") from exc

        hosts: List[HostRecord] = []
        for entry in entries:
            attributes = entry.entry_attributes_as_dict
            name = _first(attributes, "name")
            # Fallback auf den Servernamen, wenn keine TCP-Adresse hinterlegt ist
            fqdn = _fqdn_from_network_address(attributes.get("networkAddress") or []) or name
            if not name:
                logger.warning("skipping directory entry without name", dn=entry.entry_dn)
                continue
            hosts.append(
                HostRecord(name=name, fqdn=fqdn, product_tag=_first(attributes, "serialNumber"))
            )
        return hosts


def get_directory(settings: Settings) -> HostDirectory:
    if settings.ldap_host:
        return LdapDirectory(settings)
    if settings.fleet_hosts:
        return StaticDirectory(settings.fleet_hosts)
    raise DirectoryUnavailableError(
        "No directory configured; set LDAP_HOST or FLEET_HOSTS"
    )
