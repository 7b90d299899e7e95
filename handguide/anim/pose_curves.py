"""
PoseCurves: the 17-channel curve bundle of one joint or tracked object.
"""
from __future__ import annotations

from typing import List, Sequence

from .. import config as C
from ..utils.math import q_norm
from .compress import simplify_positions, simplify_rotations
from .curve import Curve
from .errors import CorruptFormat
from .models import JointTransform, Pose

# channel slices in JointTransform.values() order
POSITION = slice(0, 3)
ROTATION = slice(3, 7)
SCALE = slice(7, 10)
GLOBAL_POSITION = slice(10, 13)
GLOBAL_ROTATION = slice(13, 17)


class PoseCurves:
    CHANNEL_COUNT = JointTransform.VALUE_COUNT

    def __init__(self, channels: Sequence[Curve] = None):
        if channels is None:
            channels = [Curve() for _ in range(self.CHANNEL_COUNT)]
        self._channels: List[Curve] = list(channels)

    @classmethod
    def from_curves(cls, curves: Sequence[Curve]) -> "PoseCurves":
        if len(curves) != cls.CHANNEL_COUNT:
            raise CorruptFormat(f"pose bundle needs {cls.CHANNEL_COUNT} curves, got {len(curves)}")
        return cls([c.copy() for c in curves])

    def curves(self) -> List[Curve]:
        return list(self._channels)

    # ---------------------- capture -------------------
    def add_key(self, time: float, pose: Pose) -> None:
        """Key the local position and rotation channels only."""
        for curve, v in zip(self._channels[0:7], (*pose.position, *pose.rotation)):
            curve.add_key(time, v)

    def add_transform_key(self, time: float, transform: JointTransform) -> None:
        for curve, v in zip(self._channels, transform.values()):
            curve.add_key(time, v)

    # ---------------------- queries -------------------
    @property
    def is_empty(self) -> bool:
        return all(len(c) == 0 for c in self._channels)

    @property
    def key_count(self) -> int:
        return max(len(c) for c in self._channels)

    @property
    def start_time(self) -> float:
        firsts = [c.first_time for c in self._channels if len(c)]
        return min(firsts) if firsts else 0.0

    @property
    def end_time(self) -> float:
        lasts = [c.last_time for c in self._channels if len(c)]
        return max(lasts) if lasts else 0.0

    @property
    def duration(self) -> float:
        return max(c.duration for c in self._channels)

    def _group(self, group: slice) -> List[Curve]:
        return self._channels[group]

    def has_global(self) -> bool:
        return any(len(c) for c in self._channels[GLOBAL_POSITION]) or any(len(c) for c in self._channels[GLOBAL_ROTATION])

    def evaluate(self, time: float) -> JointTransform:
        """
        Raw channel values at `time`. The rotation is not renormalised; use
        evaluate_pose() for a pose fit for geometry.
        """
        values = [c.evaluate(time) for c in self._channels]
        # unkeyed scale / rotation channels read as identity rather than zero
        for i in (6, 7, 8, 9, 16):
            if len(self._channels[i]) == 0:
                values[i] = 1.0
        return JointTransform.from_values(values)

    def evaluate_pose(self, time: float, global_frame: bool = False) -> Pose:
        transform = self.evaluate(time)
        if global_frame and self.has_global():
            pose = transform.global_pose()
        else:
            pose = transform.local_pose()
        return Pose(pose.position, q_norm(pose.rotation))

    # ---------------------- transforms ----------------
    def optimize(self, pos_threshold: float = C.COMPRESS_POSITION_THRESHOLD, rot_threshold_deg: float = C.COMPRESS_ROTATION_THRESHOLD, partition_size: int = C.COMPRESS_PARTITION_SIZE) -> "PoseCurves":
        ch = self._channels
        out = [c.copy() for c in ch]
        out[POSITION] = simplify_positions(*ch[POSITION], pos_threshold, partition_size)
        out[ROTATION] = simplify_rotations(*ch[ROTATION], rot_threshold_deg, partition_size)
        out[GLOBAL_POSITION] = simplify_positions(*ch[GLOBAL_POSITION], pos_threshold, partition_size)
        out[GLOBAL_ROTATION] = simplify_rotations(*ch[GLOBAL_ROTATION], rot_threshold_deg, partition_size)
        return PoseCurves(out)

    def copy(self) -> "PoseCurves":
        return PoseCurves([c.copy() for c in self._channels])

    def prune(self, start: float, end: float) -> "PoseCurves":
        return PoseCurves([c.prune(start, end) for c in self._channels])

    def __eq__(self, other) -> bool:
        if not isinstance(other, PoseCurves):
            return NotImplemented
        return self._channels == other._channels

    def __repr__(self) -> str:
        return f"PoseCurves(keys={self.key_count})"
