from __future__ import annotations

import asyncio
import logging

from ..anim.document import AnimationDocument
from ..anim.errors import AnimationError
from ..anim.models import Handedness
from ..live import StaticPoseSource
from ..models import DocumentSummary, FrameRequest, RecordingStatus
from .document_service import summarize_document
from .timeline_service import joints_from_models

log = logging.getLogger(__name__)


class NotRecording(AnimationError, RuntimeError):
    """A frame or stop request arrived while no recording is running."""


def get_recording_status_service(session) -> RecordingStatus:
    with session.lock:
        buf = session.buffer
        return RecordingStatus(recording=session.recording, frames=len(buf), t0=buf.start_time, t1=buf.end_time)


def start_recording_service(session) -> RecordingStatus:
    with session.lock:
        session.buffer.clear()
        session.recording = True
    log.info("recording started")
    return get_recording_status_service(session)


def add_frame_service(session, req: FrameRequest) -> RecordingStatus:
    pinching = set()
    if req.left_pinch:
        pinching.add(Handedness.LEFT)
    if req.right_pinch:
        pinching.add(Handedness.RIGHT)
    source = StaticPoseSource.from_hands(
        left=joints_from_models(req.left),
        right=joints_from_models(req.right),
        pinching=pinching,
    )
    with session.lock:
        if not session.recording:
            raise NotRecording("recording not started")
        session.buffer.capture(req.t, source)
    return get_recording_status_service(session)


async def stop_recording_service(session) -> DocumentSummary:
    with session.lock:
        if not session.recording:
            raise NotRecording("recording not started")
        session.recording = False
        frames = len(session.buffer)
        doc = AnimationDocument.from_recording(session.buffer)
    log.info("recording stopped: %d frames", frames)
    await asyncio.wrap_future(session.set_document(doc))
    return summarize_document(doc)
