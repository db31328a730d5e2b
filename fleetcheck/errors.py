"""fleetcheck error hierarchy.

All errors raised by the collection pipeline inherit from FleetCheckError.
Per-host errors (HostCollectionError and subclasses) are caught at the
host-processing boundary and turned into a report row; only
DirectoryUnavailableError aborts a run.
"""


class FleetCheckError(Exception):
    stage: str = "internal"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class DirectoryUnavailableError(FleetCheckError):
    stage = "directory"


class HostCollectionError(FleetCheckError):
    stage = "collection"


class CounterResolutionError(HostCollectionError):
    stage = "counter resolution"


class RemoteQueryError(HostCollectionError):
    stage = "remote query"
