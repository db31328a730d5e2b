from typing import List

from fastapi import APIRouter, HTTPException

from fleetcheck.config import get_settings
from fleetcheck.errors import DirectoryUnavailableError
from fleetcheck.models.report import ReportRow
from fleetcheck.services import pipeline

router = APIRouter()


@router.get(
    "/",
    response_model=List[ReportRow],
    summary="Fleet sizing report",
)
def fleet_report() -> List[ReportRow]:
    """
    Probe and assess every mail server in the directory and return one row per
    host, in directory order.

    Hosts that cannot be assessed are included with a failure stage and
    comment. If the directory itself cannot be read, a HTTP 503 Service
    Unavailable is returned.
    """
    try:
        return pipeline.run_report(get_settings())
    except DirectoryUnavailableError as exc:
        raise HTTPException(
            status_code=503,
            detail=exc.message,
        ) from exc
