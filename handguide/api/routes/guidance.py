"""
Guidance controller routes.
"""
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..deps import get_session
from ...models import GuidanceStatus, SeekRequest, TickRequest
from ...services.guidance_service import (
    get_guidance_status_service,
    seek_guidance_service,
    start_guidance_service,
    stop_guidance_service,
    tick_guidance_service,
)

router = APIRouter(prefix="/guidance", tags=["guidance"])


@router.get("/status", response_model=GuidanceStatus)
def guidance_status():
    return get_guidance_status_service(get_session())


@router.post("/start", response_model=GuidanceStatus)
def guidance_start():
    """Restart guidance from the beginning of the published timeline."""
    return start_guidance_service(get_session())


@router.post("/stop", response_model=GuidanceStatus)
def guidance_stop():
    return stop_guidance_service(get_session())


@router.post("/seek", response_model=GuidanceStatus)
def guidance_seek(payload: SeekRequest):
    """Park the cursor at a fixed time (manual mode)."""
    return seek_guidance_service(get_session(), payload.t)


@router.post("/tick", response_model=GuidanceStatus)
def guidance_tick(payload: TickRequest):
    """
    Advance the controller by dt seconds. Body: {"dt": 0.016, "hand": {"wrist": {...}}}
    Leave out "hand" while the live hand is not tracked.
    """
    try:
        return tick_guidance_service(get_session(), payload)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
