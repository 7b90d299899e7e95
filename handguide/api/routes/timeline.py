"""
Timeline query routes.
"""
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from ..deps import get_session
from ...anim.errors import EmptyTimeline
from ...models import SampleResponse, TimelineMeta
from ...services.timeline_service import get_sample_service, get_timeline_meta_service

router = APIRouter(prefix="/timeline", tags=["timeline"])


@router.get("/meta", response_model=TimelineMeta)
def timeline_meta():
    return get_timeline_meta_service(get_session())


@router.get("/sample", response_model=SampleResponse)
def timeline_sample(t: float = Query(..., description="Timeline time (seconds), clamped into the recording")):
    """Interpolated two-hand sample at time t."""
    try:
        return get_sample_service(get_session(), t)
    except EmptyTimeline as e:
        return JSONResponse(status_code=404, content={"error": str(e)})
