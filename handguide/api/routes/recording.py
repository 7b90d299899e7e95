"""
Capture routes: a client streams frames between start and stop.
"""
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..deps import get_session
from ...anim.errors import AnimationError
from ...models import DocumentSummary, FrameRequest, RecordingStatus
from ...services.recording_service import (
    NotRecording,
    add_frame_service,
    start_recording_service,
    stop_recording_service,
)

router = APIRouter(prefix="/recording", tags=["recording"])


@router.post("/start", response_model=RecordingStatus)
def recording_start():
    return start_recording_service(get_session())


@router.post("/frame", response_model=RecordingStatus)
def recording_frame(payload: FrameRequest):
    try:
        return add_frame_service(get_session(), payload)
    except NotRecording as e:
        return JSONResponse(status_code=409, content={"error": str(e)})
    except (AnimationError, ValueError) as e:
        return JSONResponse(status_code=400, content={"error": str(e)})


@router.post("/stop", response_model=DocumentSummary)
async def recording_stop():
    """Turn the captured frames into a document and publish its timeline."""
    try:
        return await stop_recording_service(get_session())
    except NotRecording as e:
        return JSONResponse(status_code=409, content={"error": str(e)})
    except AnimationError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
