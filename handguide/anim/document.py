"""
AnimationDocument: the curve-based form of a recording.

Built append-only during capture (or read back from a file), then handed to
compression, serialization and timeline building, none of which modify it.
"""
from __future__ import annotations

import bisect
import logging
from typing import Dict, Iterator, List, Optional, Tuple

from .. import config as C
from .curve import Curve, StepCurve
from .errors import OutOfOrderSample
from .models import Handedness, JointId, JointTransform, Marker, Pose
from .pose_curves import PoseCurves
from .recording import Keyframe, RecordingBuffer

log = logging.getLogger(__name__)


def check_name(name: str) -> str:
    """Marker and object names are stored one per line in the file format."""
    if "\n" in name or "\r" in name:
        raise ValueError(f"name must be a single line: {name!r}")
    return name


class HandCurves:
    """tracked / pinch step curves plus the joint bundles of one hand."""

    def __init__(self):
        self.tracked = StepCurve()
        self.pinch = StepCurve()
        self.joints: Dict[JointId, PoseCurves] = {}

    def joint(self, joint: JointId, create: bool = False) -> Optional[PoseCurves]:
        curves = self.joints.get(joint)
        if curves is None and create:
            curves = self.joints[joint] = PoseCurves()
        return curves

    def copy(self) -> "HandCurves":
        out = HandCurves()
        out.tracked = self.tracked.copy()
        out.pinch = self.pinch.copy()
        out.joints = {j: c.copy() for j, c in self.joints.items()}
        return out


class AnimationDocument:
    def __init__(self, description: str = C.DEFAULT_DESCRIPTION):
        self.description = description
        self.reference: JointTransform = JointTransform.zero_identity()
        self.has_camera_pose = False
        self.has_hand_data = False
        self.has_eye_gaze = False
        self.hands: Dict[Handedness, HandCurves] = {h: HandCurves() for h in Handedness}
        self.head = PoseCurves()
        self.gaze = PoseCurves()
        self.objects: Dict[str, PoseCurves] = {}
        self._markers: List[Marker] = []

    def hand(self, hand: Handedness) -> HandCurves:
        return self.hands[Handedness(hand)]

    # ---------------------- capture -------------------
    def append_keyframe(self, local_time: float, keyframe: Keyframe) -> bool:
        """
        Key every channel the frame carries at `local_time`. A frame at the
        same time as the previous one is dropped (returns False).
        """
        last = self.hands[Handedness.LEFT].tracked.last_time
        if last is not None:
            if local_time < last:
                raise OutOfOrderSample(f"keyframe at t={local_time} is earlier than t={last}")
            if local_time == last:
                return False

        for name in keyframe.objects:
            check_name(name)

        for h in Handedness:
            hc = self.hands[h]
            self.has_hand_data |= keyframe.tracked(h)
            hc.tracked.add_bool_key(local_time, keyframe.tracked(h))
            hc.pinch.add_bool_key(local_time, keyframe.pinch(h))
            for joint in JointId:
                transform = keyframe.joints(h).get(joint)
                if transform is not None:
                    hc.joint(joint, create=True).add_transform_key(local_time, transform)

        if keyframe.camera is not None:
            self.has_camera_pose = True
            self.head.add_transform_key(local_time, keyframe.camera)
        if keyframe.gaze is not None:
            self.has_eye_gaze = True
            self.gaze.add_transform_key(local_time, keyframe.gaze)
        for name, transform in keyframe.objects.items():
            curves = self.objects.get(name)
            if curves is None:
                curves = self.objects[name] = PoseCurves()
            curves.add_transform_key(local_time, transform)
        return True

    @classmethod
    def from_recording(cls, buffer: RecordingBuffer, description: str = C.DEFAULT_DESCRIPTION) -> "AnimationDocument":
        """Times are rebased so the first keyframe of the buffer sits at 0."""
        doc = cls(description)
        if buffer.empty():
            return doc
        start = buffer.start_time
        for keyframe in buffer:
            doc.append_keyframe(keyframe.time - start, keyframe)
        log.info("document from recording: %d keyframes, %.2fs", len(buffer), doc.duration)
        return doc

    # ---------------------- markers -------------------
    @property
    def markers(self) -> List[Marker]:
        return list(self._markers)

    @property
    def marker_count(self) -> int:
        return len(self._markers)

    def marker(self, index: int) -> Marker:
        return self._markers[index]

    def add_marker(self, time: float, name: str = "") -> int:
        """Insert keeping time order; returns the marker's index."""
        marker = Marker(float(time), check_name(name))
        i = bisect.bisect_right([m.time for m in self._markers], marker.time)
        self._markers.insert(i, marker)
        return i

    def remove_marker(self, index: int) -> Marker:
        return self._markers.pop(index)

    def copy_markers_from(self, other: "AnimationDocument") -> None:
        self._markers = list(other._markers)

    def find_marker_interval(self, time: float) -> int:
        """Index i with markers[i].time <= time < markers[i+1].time; -1 before the first marker."""
        lo, hi = 0, len(self._markers)
        while lo < hi:
            mid = (lo + hi) // 2
            if self._markers[mid].time <= time:
                lo = mid + 1
            else:
                hi = mid
        return lo - 1

    # ---------------------- evaluation ----------------
    def evaluate_hand_state(self, time: float, hand: Handedness) -> Tuple[bool, bool]:
        hc = self.hand(hand)
        return hc.tracked.evaluate_bool(time), hc.pinch.evaluate_bool(time)

    def evaluate_hand_joint(self, time: float, hand: Handedness, joint: JointId) -> JointTransform:
        if not self.has_hand_data:
            return JointTransform.zero_identity()
        curves = self.hand(hand).joint(joint)
        if curves is None:
            return JointTransform.zero_identity()
        return curves.evaluate(time)

    def evaluate_hand_joint_pose(self, time: float, hand: Handedness, joint: JointId, global_frame: bool = False) -> Pose:
        curves = self.hand(hand).joint(joint)
        if not self.has_hand_data or curves is None:
            return Pose.identity()
        return curves.evaluate_pose(time, global_frame)

    def evaluate_camera_pose(self, time: float) -> Pose:
        if not self.has_camera_pose:
            return Pose.identity()
        return self.head.evaluate_pose(time)

    def evaluate_eye_gaze(self, time: float) -> Pose:
        if not self.has_eye_gaze:
            return Pose.identity()
        return self.gaze.evaluate_pose(time)

    def evaluate_object(self, time: float, name: str) -> JointTransform:
        curves = self.objects.get(name)
        if curves is None:
            raise KeyError(name)
        return curves.evaluate(time)

    # ---------------------- extent --------------------
    def all_curves(self) -> Iterator[Curve]:
        for h in Handedness:
            hc = self.hands[h]
            yield hc.tracked
            yield hc.pinch
            for bundle in hc.joints.values():
                yield from bundle.curves()
        yield from self.head.curves()
        yield from self.gaze.curves()
        for bundle in self.objects.values():
            yield from bundle.curves()

    @property
    def duration(self) -> float:
        return max((c.duration for c in self.all_curves()), default=0.0)

    @property
    def earliest_timestamp(self) -> float:
        return min((c.first_time for c in self.all_curves() if len(c)), default=0.0)

    @property
    def latest_timestamp(self) -> float:
        return max((c.last_time for c in self.all_curves() if len(c)), default=0.0)

    @property
    def key_count(self) -> int:
        return sum(len(c) for c in self.all_curves())

    # ---------------------- transforms ----------------
    def _derive(self, hand_fn, bundle_fn) -> "AnimationDocument":
        out = AnimationDocument(self.description)
        out.reference = self.reference
        out.has_camera_pose = self.has_camera_pose
        out.has_hand_data = self.has_hand_data
        out.has_eye_gaze = self.has_eye_gaze
        out.hands = {h: hand_fn(hc) for h, hc in self.hands.items()}
        out.head = bundle_fn(self.head)
        out.gaze = bundle_fn(self.gaze)
        out.objects = {name: bundle_fn(b) for name, b in self.objects.items()}
        out._markers = list(self._markers)
        return out

    def copy(self) -> "AnimationDocument":
        return self._derive(lambda hc: hc.copy(), lambda b: b.copy())

    def prune(self, start: float, end: float) -> "AnimationDocument":
        """Keep only keys (and markers) with start <= time <= end."""
        def prune_hand(hc: HandCurves) -> HandCurves:
            out = HandCurves()
            out.tracked = hc.tracked.prune(start, end)
            out.pinch = hc.pinch.prune(start, end)
            out.joints = {j: b.prune(start, end) for j, b in hc.joints.items()}
            return out

        out = self._derive(prune_hand, lambda b: b.prune(start, end))
        out._markers = [m for m in self._markers if start <= m.time <= end]
        return out

    def compress(self, pos_threshold: float = C.COMPRESS_POSITION_THRESHOLD, rot_threshold_deg: float = C.COMPRESS_ROTATION_THRESHOLD, partition_size: int = C.COMPRESS_PARTITION_SIZE) -> "AnimationDocument":
        """
        New document with every pose bundle simplified. Tracked / pinch
        curves are kept whole: their key grid defines the timeline samples.
        """
        def optimize(b: PoseCurves) -> PoseCurves:
            return b.optimize(pos_threshold, rot_threshold_deg, partition_size)

        def compress_hand(hc: HandCurves) -> HandCurves:
            out = HandCurves()
            out.tracked = hc.tracked.copy()
            out.pinch = hc.pinch.copy()
            out.joints = {j: optimize(b) for j, b in hc.joints.items()}
            return out

        before = self.key_count
        out = self._derive(compress_hand, optimize)
        after = out.key_count
        log.info("compressed document: %d -> %d keys (%.1f%%)", before, after, 100.0 * after / before if before else 100.0)
        return out

    def __repr__(self) -> str:
        return f"AnimationDocument({self.description!r}, duration={self.duration:.3f})"


def compress_document(document: AnimationDocument, pos_threshold: float = C.COMPRESS_POSITION_THRESHOLD, rot_threshold_deg: float = C.COMPRESS_ROTATION_THRESHOLD, partition_size: int = C.COMPRESS_PARTITION_SIZE) -> AnimationDocument:
    return document.compress(pos_threshold, rot_threshold_deg, partition_size)
