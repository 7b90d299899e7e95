"""
Live pose input.

The tracking hardware sits behind LivePoseSource; the capture buffer and the
guidance API only ever ask it for one joint of one hand at a time.
"""
from __future__ import annotations

from typing import Dict, Mapping, Optional, Protocol, Set, Tuple

from .anim.models import FINGERTIP_POINTS, Handedness, JointId, Pose


class LivePoseSource(Protocol):
    def get_joint_pose(self, hand: Handedness, joint: JointId) -> Optional[Pose]:
        ...

    def is_pinching(self, hand: Handedness) -> bool:
        ...


class StaticPoseSource:
    """
    Dict-backed pose source. Used by the HTTP recording endpoint (one frame
    per request) and by tests.
    """

    def __init__(self, joints: Mapping[Tuple[Handedness, JointId], Pose] = None, pinching: Set[Handedness] = None):
        self._joints: Dict[Tuple[Handedness, JointId], Pose] = dict(joints or {})
        self._pinching: Set[Handedness] = set(pinching or ())

    @classmethod
    def from_hands(cls, left: Mapping[JointId, Pose] = None, right: Mapping[JointId, Pose] = None, pinching: Set[Handedness] = None) -> "StaticPoseSource":
        joints = {}
        for hand, points in ((Handedness.LEFT, left), (Handedness.RIGHT, right)):
            for joint, pose in (points or {}).items():
                joints[(hand, joint)] = pose
        return cls(joints, pinching)

    def set_joint_pose(self, hand: Handedness, joint: JointId, pose: Optional[Pose]) -> None:
        if pose is None:
            self._joints.pop((hand, joint), None)
        else:
            self._joints[(hand, joint)] = pose

    def set_pinching(self, hand: Handedness, pinching: bool) -> None:
        if pinching:
            self._pinching.add(hand)
        else:
            self._pinching.discard(hand)

    def get_joint_pose(self, hand: Handedness, joint: JointId) -> Optional[Pose]:
        return self._joints.get((hand, joint))

    def is_pinching(self, hand: Handedness) -> bool:
        return hand in self._pinching


def hand_points(source: LivePoseSource, hand: Handedness, joints=FINGERTIP_POINTS) -> Optional[Dict[JointId, Pose]]:
    """
    Poses of `joints` for one hand, or None when the hand is not tracked
    (its wrist is absent). Other missing joints are simply left out.
    """
    if source is None or source.get_joint_pose(hand, JointId.WRIST) is None:
        return None
    out: Dict[JointId, Pose] = {}
    for joint in joints:
        pose = source.get_joint_pose(hand, joint)
        if pose is not None:
            out[joint] = pose
    return out
