"""
Data classes for hand recordings and playback.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Sequence, Tuple

from ..utils.math import IDENTITY_QUAT, Quat, Vec3, q_norm
from .errors import CorruptFormat


class JointId(IntEnum):
    """
    Hand skeleton points in file order. Values start at 1 so the column
    layout matches recordings written by the headset app.
    """
    WRIST = 1
    PALM = 2
    THUMB_METACARPAL_JOINT = 3
    THUMB_PROXIMAL_JOINT = 4
    THUMB_DISTAL_JOINT = 5
    THUMB_TIP = 6
    INDEX_METACARPAL = 7
    INDEX_KNUCKLE = 8
    INDEX_MIDDLE_JOINT = 9
    INDEX_DISTAL_JOINT = 10
    INDEX_TIP = 11
    MIDDLE_METACARPAL = 12
    MIDDLE_KNUCKLE = 13
    MIDDLE_MIDDLE_JOINT = 14
    MIDDLE_DISTAL_JOINT = 15
    MIDDLE_TIP = 16
    RING_METACARPAL = 17
    RING_KNUCKLE = 18
    RING_MIDDLE_JOINT = 19
    RING_DISTAL_JOINT = 20
    RING_TIP = 21
    PINKY_METACARPAL = 22
    PINKY_KNUCKLE = 23
    PINKY_MIDDLE_JOINT = 24
    PINKY_DISTAL_JOINT = 25
    PINKY_TIP = 26

    @classmethod
    def parse(cls, name: str) -> "JointId":
        """Look up a joint by enum name, ignoring case ("wrist", "IndexTip" and "INDEX_TIP" all work)."""
        key = name.strip().upper()
        if key in cls.__members__:
            return cls[key]
        compact = key.replace("_", "")
        for member in cls:
            if member.name.replace("_", "") == compact:
                return member
        raise KeyError(name)


# Points compared by the guidance controller, in weight order.
FINGERTIP_POINTS: Tuple[JointId, ...] = (
    JointId.WRIST,
    JointId.THUMB_TIP,
    JointId.INDEX_TIP,
    JointId.MIDDLE_TIP,
    JointId.RING_TIP,
    JointId.PINKY_TIP,
)


class Handedness(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def other(self) -> "Handedness":
        return Handedness.RIGHT if self is Handedness.LEFT else Handedness.LEFT


@dataclass(frozen=True)
class Pose:
    """Position + orientation quaternion (x, y, z, w)."""
    position: Vec3 = (0.0, 0.0, 0.0)
    rotation: Quat = IDENTITY_QUAT

    @classmethod
    def identity(cls) -> "Pose":
        return cls()

    def normalized(self) -> "Pose":
        return Pose(self.position, q_norm(self.rotation))


@dataclass(frozen=True)
class JointTransform:
    """
    Full per-joint record as captured: local pose, scale and the pose in the
    global (anchor) frame. 17 values in channel order.
    """
    position: Vec3 = (0.0, 0.0, 0.0)
    rotation: Quat = IDENTITY_QUAT
    scale: Vec3 = (1.0, 1.0, 1.0)
    global_position: Vec3 = (0.0, 0.0, 0.0)
    global_rotation: Quat = IDENTITY_QUAT

    VALUE_COUNT = 17

    @classmethod
    def zero_identity(cls) -> "JointTransform":
        return cls()

    @classmethod
    def from_pose(cls, pose: Pose, global_pose: Pose = None) -> "JointTransform":
        g = global_pose if global_pose is not None else pose
        return cls(
            position=tuple(pose.position),
            rotation=tuple(pose.rotation),
            global_position=tuple(g.position),
            global_rotation=tuple(g.rotation),
        )

    @classmethod
    def from_values(cls, values: Sequence[float]) -> "JointTransform":
        if len(values) != cls.VALUE_COUNT:
            raise CorruptFormat(f"expected {cls.VALUE_COUNT} transform values, got {len(values)}")
        v = [float(x) for x in values]
        return cls(
            position=(v[0], v[1], v[2]),
            rotation=(v[3], v[4], v[5], v[6]),
            scale=(v[7], v[8], v[9]),
            global_position=(v[10], v[11], v[12]),
            global_rotation=(v[13], v[14], v[15], v[16]),
        )

    def values(self) -> Tuple[float, ...]:
        return (
            *self.position,
            *self.rotation,
            *self.scale,
            *self.global_position,
            *self.global_rotation,
        )

    def local_pose(self) -> Pose:
        return Pose(self.position, self.rotation)

    def global_pose(self) -> Pose:
        return Pose(self.global_position, self.global_rotation)


@dataclass(frozen=True, order=True)
class Marker:
    """A user-defined marker, placed relative to the animation start."""
    time: float
    name: str = ""
