from typing import Dict

from fastapi import APIRouter

router = APIRouter()


@router.get("/", summary="Liveness")
async def health() -> Dict[str, str]:
    return {"status": "ok"}
