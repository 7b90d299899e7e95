"""
Timeline: resolved two-hand samples with interpolated random access.

A timeline is built once (from a document or a capture buffer), then only
queried. Rebuilding means constructing a new Timeline and swapping the
reference; see state.GuidanceSession.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from .. import config as C
from ..utils.math import Quat, Vec3, q_inverse, q_mul, q_rotate, q_slerp, v3_dist, v3_lerp, v3_sub
from .document import AnimationDocument
from .errors import CorruptFormat, EmptyTimeline, InsufficientSamples, OutOfOrderSample
from .models import Handedness, JointId, Pose
from .recording import RecordingBuffer

log = logging.getLogger(__name__)


@dataclass
class HandSample:
    tracked: bool = False
    joints: Dict[JointId, Pose] = field(default_factory=dict)
    speed: float = 0.0

    def pose(self, joint: JointId) -> Optional[Pose]:
        return self.joints.get(joint)

    def copy(self) -> "HandSample":
        return HandSample(self.tracked, dict(self.joints), self.speed)

    @staticmethod
    def interpolate(a: "HandSample", b: "HandSample", alpha: float) -> "HandSample":
        """Untracked on either side: take the other side's data as is."""
        if not a.tracked:
            return b.copy()
        if not b.tracked:
            return a.copy()
        joints: Dict[JointId, Pose] = {}
        for joint in JointId:
            pa, pb = a.joints.get(joint), b.joints.get(joint)
            if pa is not None and pb is not None:
                joints[joint] = Pose(v3_lerp(pa.position, pb.position, alpha), q_slerp(pa.rotation, pb.rotation, alpha))
            elif pa is not None or pb is not None:
                joints[joint] = pa if pa is not None else pb
        return HandSample(True, joints, a.speed + (b.speed - a.speed) * alpha)


@dataclass
class Sample:
    time: float
    left: HandSample = field(default_factory=HandSample)
    right: HandSample = field(default_factory=HandSample)

    def hand(self, hand: Handedness) -> HandSample:
        return self.left if Handedness(hand) is Handedness.LEFT else self.right

    @staticmethod
    def interpolate(a: "Sample", b: "Sample", alpha: float) -> "Sample":
        return Sample(
            time=a.time + (b.time - a.time) * alpha,
            left=HandSample.interpolate(a.left, b.left, alpha),
            right=HandSample.interpolate(a.right, b.right, alpha),
        )


class Timeline:
    def __init__(self, samples: List[Sample] = None):
        self._samples: List[Sample] = []
        self._times: List[float] = []
        for s in samples or ():
            self.add_sample(s)

    # ---------------------- building ------------------
    def add_sample(self, sample: Sample) -> None:
        if self._times and sample.time < self._times[-1]:
            raise OutOfOrderSample(f"sample at t={sample.time} is earlier than last sample t={self._times[-1]}")
        self._samples.append(sample)
        self._times.append(float(sample.time))

    # ---------------------- extent --------------------
    def __len__(self) -> int:
        return len(self._samples)

    def __getitem__(self, i: int) -> Sample:
        return self._samples[i]

    def __iter__(self):
        return iter(self._samples)

    @property
    def samples(self) -> List[Sample]:
        return list(self._samples)

    @property
    def times(self) -> List[float]:
        return list(self._times)

    @property
    def start_time(self) -> float:
        return self._times[0] if self._times else 0.0

    @property
    def end_time(self) -> float:
        return self._times[-1] if self._times else 0.0

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    # ---------------------- queries -------------------
    def closest_index(self, time: float) -> int:
        """Index of the sample at exactly `time`, else the index it would be inserted at."""
        if not self._times:
            raise EmptyTimeline("closest_index on an empty timeline")
        lo, hi = 0, len(self._times)
        while lo < hi:
            mid = (lo + hi) // 2
            if self._times[mid] < time:
                lo = mid + 1
            else:
                hi = mid
        return lo

    def interpolate_at(self, time: float) -> Sample:
        if not self._samples:
            raise EmptyTimeline("interpolate_at on an empty timeline")
        if time <= self._times[0]:
            return self._samples[0]
        if time >= self._times[-1]:
            return self._samples[-1]
        i = self.closest_index(time)
        if self._times[i] == time:
            return self._samples[i]
        a, b = self._samples[i - 1], self._samples[i]
        alpha = (time - a.time) / (b.time - a.time)
        return Sample.interpolate(a, b, alpha)

    def speed_at(self, time: float, hand: Handedness) -> float:
        return self.interpolate_at(time).hand(hand).speed

    # ---------------------- construction --------------
    @classmethod
    def from_document(cls, document: AnimationDocument, compensate_anchor: bool = True) -> "Timeline":
        """One sample per tracked key; joints a hand never recorded read as the identity pose."""
        left = document.hand(Handedness.LEFT).tracked
        right = document.hand(Handedness.RIGHT).tracked
        grid = left.times
        if grid != right.times:
            raise CorruptFormat(f"left/right tracked grids differ ({len(left)} vs {len(right)} keys)")

        samples: List[Sample] = []
        for t in grid:
            sample = Sample(time=t)
            for hand in Handedness:
                hc = document.hand(hand)
                hs = sample.hand(hand)
                hs.tracked = hc.tracked.evaluate_bool(t)
                for joint in JointId:
                    bundle = hc.joints.get(joint)
                    hs.joints[joint] = bundle.evaluate_pose(t, global_frame=True) if bundle is not None else Pose.identity()
            samples.append(sample)

        if compensate_anchor:
            for hand in Handedness:
                _compensate_anchor(document, samples, hand)

        timeline = cls(samples)
        timeline.estimate_speeds()
        log.info("timeline from document: %d samples, %.2fs", len(timeline), timeline.duration)
        return timeline

    @classmethod
    def from_recording(cls, buffer: RecordingBuffer) -> "Timeline":
        timeline = cls()
        for kf in buffer:
            sample = Sample(time=kf.time)
            for hand in Handedness:
                hs = sample.hand(hand)
                hs.tracked = kf.tracked(hand)
                hs.joints = {j: tr.local_pose().normalized() for j, tr in kf.joints(hand).items()}
            if len(timeline) and sample.time == timeline.end_time:
                continue
            timeline.add_sample(sample)
        timeline.estimate_speeds()
        log.info("timeline from recording: %d samples, %.2fs", len(timeline), timeline.duration)
        return timeline

    def estimate_speeds(self) -> None:
        """Fill in smoothed speeds of both hands; too few samples leaves them at 0."""
        for hand in Handedness:
            try:
                speeds = estimate_hand_speeds(self._samples, hand)
            except InsufficientSamples as e:
                log.warning("no speed estimate for %s hand: %s", hand.value, e)
                continue
            for sample, speed in zip(self._samples, speeds):
                sample.hand(hand).speed = float(speed)


def _anchor_transform(document: AnimationDocument, samples: List[Sample], hand: Handedness) -> Optional[Tuple[Quat, Vec3]]:
    """
    Rotation R and offset d with G = R * L + d, taken from the first tracked
    wrist key of `hand`.
    """
    wrist = document.hand(hand).joint(JointId.WRIST)
    if wrist is None or not wrist.has_global():
        return None
    for s in samples:
        if not s.hand(hand).tracked:
            continue
        tr = wrist.evaluate(s.time)
        local, glob = tr.local_pose().normalized(), tr.global_pose().normalized()
        R = q_mul(glob.rotation, q_inverse(local.rotation))
        offset = v3_sub(glob.position, q_rotate(R, local.position))
        return R, offset
    return None


def _compensate_anchor(document: AnimationDocument, samples: List[Sample], hand: Handedness) -> None:
    found = _anchor_transform(document, samples, hand)
    if found is None:
        return
    R, offset = found
    R_inv = q_inverse(R)
    log.debug("%s anchor: R=%s d=%s", hand.value, R, offset)
    for s in samples:
        hs = s.hand(hand)
        if not hs.tracked:
            continue
        hs.joints = {
            j: Pose(q_rotate(R_inv, v3_sub(p.position, offset)), q_mul(R_inv, p.rotation))
            for j, p in hs.joints.items()
        }


def estimate_hand_speeds(samples: List[Sample], hand: Handedness) -> np.ndarray:
    """
    Smoothed wrist speed per sample.

    Raw speed between consecutive samples (n - 1 values) goes through a
    centred moving average; positions the full window cannot reach repeat the
    nearest smoothed value.
    """
    n = len(samples)
    if n < 3:
        raise InsufficientSamples(f"need at least 3 samples, got {n}")

    raw = np.zeros(n - 1)
    for i in range(n - 1):
        a, b = samples[i].hand(hand), samples[i + 1].hand(hand)
        pa, pb = a.pose(JointId.WRIST), b.pose(JointId.WRIST)
        dt = samples[i + 1].time - samples[i].time
        if dt <= 0.0:
            dt = C.DEFAULT_FRAME_INTERVAL
        if pa is None or pb is None:
            continue
        raw[i] = v3_dist(pa.position, pb.position) / dt

    m = len(raw)
    half = min((n - 1) // 2, C.SPEED_HALF_WINDOW_MAX, (m - 1) // 2)
    width = 2 * half + 1
    # smoothed[k] is centred on raw[k + half]
    smoothed = np.convolve(raw, np.ones(width) / width, mode="valid")

    out = np.empty(n)
    out[:half] = smoothed[0]
    out[half:half + len(smoothed)] = smoothed
    out[half + len(smoothed):] = smoothed[-1]
    return out
