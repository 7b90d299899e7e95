from __future__ import annotations
from typing import Dict, Mapping, Optional

from ..anim.errors import EmptyTimeline
from ..anim.models import JointId, Pose
from ..anim.timeline import HandSample
from ..models import HandSampleModel, PoseModel, SampleResponse, TimelineMeta


def joint_name(joint: JointId) -> str:
    return joint.name.lower()


def pose_to_model(pose: Pose) -> PoseModel:
    return PoseModel(position=list(pose.position), rotation=list(pose.rotation))


def pose_from_model(model: PoseModel) -> Pose:
    if len(model.position) != 3 or len(model.rotation) != 4:
        raise ValueError("pose needs 3 position and 4 rotation values")
    return Pose(tuple(model.position), tuple(model.rotation)).normalized()


def joints_from_models(joints: Optional[Mapping[str, PoseModel]]) -> Optional[Dict[JointId, Pose]]:
    """Joint-name keyed poses -> JointId keyed poses; None stays None (hand absent)."""
    if joints is None:
        return None
    out: Dict[JointId, Pose] = {}
    for name, model in joints.items():
        try:
            joint = JointId.parse(name)
        except KeyError:
            raise ValueError(f"unknown joint {name!r}") from None
        out[joint] = pose_from_model(model)
    return out


def hand_to_model(hand: HandSample) -> HandSampleModel:
    return HandSampleModel(
        tracked=hand.tracked,
        speed=hand.speed,
        joints={joint_name(j): pose_to_model(p) for j, p in sorted(hand.joints.items())},
    )


def get_timeline_meta_service(session) -> TimelineMeta:
    with session.lock:
        tl = session.timeline
        doc = session.document
    if tl is None:
        return TimelineMeta(count=0, t0=0.0, t1=0.0, duration=0.0, description=doc.description if doc else None)
    return TimelineMeta(
        count=len(tl),
        t0=tl.start_time,
        t1=tl.end_time,
        duration=tl.duration,
        description=doc.description if doc else None,
    )


def get_sample_service(session, t: float) -> SampleResponse:
    with session.lock:
        tl = session.timeline
    if tl is None:
        raise EmptyTimeline("no timeline published")
    t = min(max(t, tl.start_time), tl.end_time)
    sample = tl.interpolate_at(t)
    return SampleResponse(t=t, left=hand_to_model(sample.left), right=hand_to_model(sample.right))
