from __future__ import annotations

from ..models import GuidanceStatus, TickRequest
from .timeline_service import joints_from_models


def get_guidance_status_service(session) -> GuidanceStatus:
    with session.lock:
        c = session.controller
        return GuidanceStatus(
            state=c.state.value,
            guidance_speed=c.guidance_speed,
            estimated_time=c.estimated_time,
            visualization_time=c.visualization_time,
            last_distance=c.last_distance,
            last_tolerance=c.last_tolerance,
            completed_count=c.completed_count,
        )


def start_guidance_service(session) -> GuidanceStatus:
    with session.lock:
        session.controller.start(session.timeline)
    return get_guidance_status_service(session)


def stop_guidance_service(session) -> GuidanceStatus:
    with session.lock:
        session.controller.stop()
    return get_guidance_status_service(session)


def seek_guidance_service(session, t: float) -> GuidanceStatus:
    with session.lock:
        session.controller.seek(t)
    return get_guidance_status_service(session)


def tick_guidance_service(session, req: TickRequest) -> GuidanceStatus:
    live = joints_from_models(req.hand)
    with session.lock:
        session.controller.tick(req.dt, live)
    return get_guidance_status_service(session)
