import json
from typing import Any, Dict, List

import winrm
from requests.exceptions import RequestException
from winrm.exceptions import WinRMError, WinRMOperationTimeoutError, WinRMTransportError

from fleetcheck.config import Settings
from fleetcheck.errors import RemoteQueryError

_HTTP_PORT = 5985
_HTTPS_PORT = 5986

# pywinrm requires the HTTP read timeout to exceed the WS-Man operation timeout
_READ_TIMEOUT_MARGIN_SECONDS = 10

# Exceptions raised by pywinrm and the underlying requests/ntlm stack
_TRANSPORT_ERRORS = (
    WinRMError,
    WinRMTransportError,
    WinRMOperationTimeoutError,
    RequestException,
    OSError,
)


def _endpoint(fqdn: str, use_ssl: bool) -> str:
    if use_ssl:
        return f"https://{fqdn}:{_HTTPS_PORT}/wsman"
    return f"http://{fqdn}:{_HTTP_PORT}/wsman"


class RemoteSession:
    """
    Thin wrapper around a pywinrm session to one managed host.

    All remote reads of a report run go through this class so that transport
    errors, non-zero exit codes and unparsable output surface uniformly as
    RemoteQueryError.
    """

    def __init__(self, fqdn: str, settings: Settings) -> None:
        self.fqdn = fqdn
        try:
            self._session = winrm.Session(
                _endpoint(fqdn, settings.winrm_use_ssl),
                auth=(settings.winrm_username or "", settings.winrm_password or ""),
                transport=settings.winrm_transport,
                server_cert_validation="ignore",
                operation_timeout_sec=settings.remote_timeout_seconds,
                read_timeout_sec=settings.remote_timeout_seconds
                + _READ_TIMEOUT_MARGIN_SECONDS,
            )
        except _TRANSPORT_ERRORS as exc:
            raise RemoteQueryError(f"Cannot set up WinRM session to {fqdn}: {exc}") from exc

    def handshake(self) -> None:
        """
        Open and close a remote shell to prove the WS-Management endpoint
        answers and accepts our credentials. Raises RemoteQueryError otherwise.
        """
        protocol = self._session.protocol
        try:
            shell_id = protocol.open_shell()
            protocol.close_shell(shell_id)
        except _TRANSPORT_ERRORS as exc:
            raise RemoteQueryError(f"WinRM handshake with {self.fqdn} failed: {exc}") from exc

    def run_ps(self, script: str) -> str:
        """Run a PowerShell script on the host and return its stdout."""
        try:
            response = self._session.run_ps(script)
        except _TRANSPORT_ERRORS as exc:
            raise RemoteQueryError(f"WinRM call to {self.fqdn} failed: {exc}") from exc

        if response.status_code != 0:
            stderr = response.std_err.decode("utf-8", errors="replace").strip()
            raise RemoteQueryError(
                f"PowerShell on {self.fqdn} exited with {response.status_code}: {stderr}"
            )
        return response.std_out.decode("utf-8", errors="replace").strip()

    def run_ps_json(self, command: str) -> List[Any]:
        """
        Run a PowerShell pipeline that is serialised with ConvertTo-Json and
        return the parsed records. A single object is returned as a one-element
        list, empty output as an empty list.
        """
        raw = self.run_ps(f"{command} | ConvertTo-Json -Compress")
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise RemoteQueryError(
                f"Unparsable output from {self.fqdn} for {command!r}: {exc}"
            ) from exc
        if isinstance(data, list):
            return data
        return [data]


def open_session(fqdn: str, settings: Settings) -> RemoteSession:
    return RemoteSession(fqdn, settings)


def records(rows: List[Any], what: str) -> List[Dict[str, Any]]:
    """Ensure a JSON result is a list of objects, e.g. CIM instances."""
    if not all(isinstance(row, dict) for row in rows):
        raise RemoteQueryError(f"Unexpected {what} records: {rows!r}")
    return rows
