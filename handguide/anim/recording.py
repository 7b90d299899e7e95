"""
Capture buffer: raw keyframes appended frame by frame during a recording.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterator, Optional

from .. import config as C
from .errors import OutOfOrderSample
from .models import Handedness, JointId, JointTransform

log = logging.getLogger(__name__)


@dataclass
class Keyframe:
    time: float
    left_tracked: bool = False
    right_tracked: bool = False
    left_pinch: bool = False
    right_pinch: bool = False
    left_joints: Dict[JointId, JointTransform] = field(default_factory=dict)
    right_joints: Dict[JointId, JointTransform] = field(default_factory=dict)
    objects: Dict[str, JointTransform] = field(default_factory=dict)
    camera: Optional[JointTransform] = None
    gaze: Optional[JointTransform] = None

    def tracked(self, hand: Handedness) -> bool:
        return self.left_tracked if hand is Handedness.LEFT else self.right_tracked

    def pinch(self, hand: Handedness) -> bool:
        return self.left_pinch if hand is Handedness.LEFT else self.right_pinch

    def joints(self, hand: Handedness) -> Dict[JointId, JointTransform]:
        return self.left_joints if hand is Handedness.LEFT else self.right_joints


class RecordingBuffer:
    """
    Append-only keyframe store. Once `max_keyframes` is reached the oldest
    keyframes are dropped.
    """

    def __init__(self, max_keyframes: int = C.RECORDING_BUFFER_MAX):
        self._frames: Deque[Keyframe] = deque(maxlen=max_keyframes)

    def append(self, keyframe: Keyframe) -> None:
        if self._frames and keyframe.time < self._frames[-1].time:
            raise OutOfOrderSample(f"keyframe at t={keyframe.time} is earlier than t={self._frames[-1].time}")
        if len(self._frames) == self._frames.maxlen:
            log.debug("recording buffer full, dropping keyframe at t=%.3f", self._frames[0].time)
        self._frames.append(keyframe)

    def capture(self, time: float, source, objects: Dict[str, JointTransform] = None) -> Keyframe:
        """Read every joint of both hands from a live pose source and append the frame."""
        frame = Keyframe(time=float(time), objects=dict(objects or {}))
        for hand in Handedness:
            joints = frame.joints(hand)
            for joint in JointId:
                pose = source.get_joint_pose(hand, joint)
                if pose is not None:
                    joints[joint] = JointTransform.from_pose(pose)
            tracked = JointId.WRIST in joints
            pinch = tracked and bool(source.is_pinching(hand))
            if hand is Handedness.LEFT:
                frame.left_tracked, frame.left_pinch = tracked, pinch
            else:
                frame.right_tracked, frame.right_pinch = tracked, pinch
        self.append(frame)
        return frame

    def clear(self) -> None:
        self._frames.clear()

    def empty(self) -> bool:
        return not self._frames

    @property
    def start_time(self) -> float:
        return self._frames[0].time if self._frames else 0.0

    @property
    def end_time(self) -> float:
        return self._frames[-1].time if self._frames else 0.0

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[Keyframe]:
        return iter(list(self._frames))
