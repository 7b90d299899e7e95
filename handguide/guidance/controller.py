"""
Closed-loop guidance: advances a playback cursor through a recorded timeline
at a speed that adapts to how closely the live hand follows the recording.

    STARTING -> PREVIEW -> FOLLOWING -> STARTING (after each completed run)

FINISHED and MANUAL are only entered through stop() and seek().
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping, Optional, Sequence, Tuple

from .. import config as C
from ..anim.models import FINGERTIP_POINTS, Handedness, JointId, Pose
from ..anim.timeline import Timeline
from ..utils.math import clip, inverse_lerp, v3_dist

log = logging.getLogger(__name__)


class GuidanceState(str, Enum):
    STARTING = "starting"
    PREVIEW = "preview"
    FOLLOWING = "following"
    FINISHED = "finished"
    MANUAL = "manual"


@dataclass
class GuidanceConfig:
    guided_hand: Handedness = Handedness(C.GUIDED_HAND)
    max_speed: float = C.MAX_GUIDANCE_SPEED
    max_acceleration: float = C.MAX_ACCELERATION
    max_deceleration: float = C.MAX_DECELERATION
    lookahead: float = C.LOOKAHEAD_SEC
    preview_rate: float = C.PREVIEW_RATE
    tight_tolerance: float = C.TIGHT_TOLERANCE
    tight_tolerance_speed: float = C.TIGHT_TOLERANCE_SPEED
    loose_tolerance: float = C.LOOSE_TOLERANCE
    loose_tolerance_speed: float = C.LOOSE_TOLERANCE_SPEED
    weights: Tuple[float, ...] = field(default_factory=lambda: tuple(C.DISTANCE_WEIGHTS))

    def __post_init__(self):
        self.guided_hand = Handedness(self.guided_hand)
        self.weights = tuple(float(w) for w in self.weights)
        if len(self.weights) != len(FINGERTIP_POINTS):
            raise ValueError(f"expected {len(FINGERTIP_POINTS)} distance weights, got {len(self.weights)}")
        if self.max_deceleration > 0:
            raise ValueError("max_deceleration must be <= 0")
        if self.tight_tolerance <= 0 or self.loose_tolerance <= 0:
            raise ValueError("tolerances must be > 0")


def weighted_hand_distance(demo: Mapping[JointId, Pose], live: Mapping[JointId, Pose], weights: Sequence[float]) -> Optional[float]:
    """
    Sum of weighted position distances over wrist and the five fingertips.
    None when a point with non-zero weight is missing on either side.
    """
    total = 0.0
    for joint, w in zip(FINGERTIP_POINTS, weights):
        if w == 0.0:
            continue
        a, b = demo.get(joint), live.get(joint)
        if a is None or b is None:
            return None
        total += w * v3_dist(a.position, b.position)
    return total


def required_tolerance(recorded_speed: float, config: GuidanceConfig) -> float:
    """Tight tolerance for slow recorded motion, loose for fast, linear in between."""
    u = inverse_lerp(config.tight_tolerance_speed, config.loose_tolerance_speed, recorded_speed)
    return config.tight_tolerance + (config.loose_tolerance - config.tight_tolerance) * u


class GuidanceController:
    def __init__(self, config: GuidanceConfig = None, timeline: Timeline = None, on_complete: Callable[[], None] = None):
        self.config = config or GuidanceConfig()
        self.on_complete = on_complete
        self._timeline: Optional[Timeline] = timeline
        self._state = GuidanceState.STARTING
        self._speed = 0.0
        self._estimated = 0.0
        self._visualized = 0.0
        self._preview = 0.0
        self._last_distance: Optional[float] = None
        self._last_tolerance: Optional[float] = None
        self.completed_count = 0

    # ---------------------- read-only -----------------
    @property
    def state(self) -> GuidanceState:
        return self._state

    @property
    def guidance_speed(self) -> float:
        return self._speed

    @property
    def estimated_time(self) -> float:
        return self._estimated

    @property
    def visualization_time(self) -> float:
        return self._visualized

    @property
    def last_distance(self) -> Optional[float]:
        return self._last_distance

    @property
    def last_tolerance(self) -> Optional[float]:
        return self._last_tolerance

    @property
    def timeline(self) -> Optional[Timeline]:
        return self._timeline

    def _has_timeline(self) -> bool:
        return self._timeline is not None and len(self._timeline) > 0

    def _enter(self, state: GuidanceState) -> None:
        if state is not self._state:
            log.info("guidance %s -> %s", self._state.value, state.value)
        self._state = state

    # ---------------------- commands ------------------
    def set_timeline(self, timeline: Optional[Timeline]) -> None:
        self._timeline = timeline

    def start(self, timeline: Timeline = None) -> None:
        if timeline is not None:
            self._timeline = timeline
        self._speed = 0.0
        self._estimated = self._timeline.start_time if self._timeline is not None else 0.0
        self._visualized = self._preview = self._estimated
        self._last_distance = self._last_tolerance = None
        self._enter(GuidanceState.STARTING)

    def stop(self) -> None:
        self._speed = 0.0
        self._enter(GuidanceState.FINISHED)

    def seek(self, time: float) -> float:
        """Park the cursor at `time` (clamped into the timeline)."""
        if self._has_timeline():
            time = clip(time, self._timeline.start_time, self._timeline.end_time)
        self._speed = 0.0
        self._estimated = self._visualized = float(time)
        self._enter(GuidanceState.MANUAL)
        return self._visualized

    # ---------------------- per-frame -----------------
    def tick(self, dt: float, live_hand: Optional[Mapping[JointId, Pose]] = None) -> float:
        """Advance by `dt` seconds; returns the time to visualise."""
        dt = max(float(dt), 0.0)
        state = self._state

        if state is GuidanceState.STARTING:
            if self._has_timeline():
                self._preview = self._visualized = self._timeline.start_time
                self._enter(GuidanceState.PREVIEW)
        elif state is GuidanceState.PREVIEW:
            if self._has_timeline():
                self._tick_preview(dt)
        elif state is GuidanceState.FOLLOWING:
            if self._has_timeline():
                self._tick_following(dt, live_hand)
        return self._visualized

    def _tick_preview(self, dt: float) -> None:
        end = self._timeline.end_time
        self._preview = min(self._preview + dt * self.config.preview_rate, end)
        self._visualized = self._preview
        if self._preview >= end:
            self._estimated = self._timeline.start_time
            self._speed = 0.0
            self._enter(GuidanceState.FOLLOWING)

    def _acceleration(self, live_hand: Optional[Mapping[JointId, Pose]]) -> float:
        cfg = self.config
        demo = self._timeline.interpolate_at(self._estimated).hand(cfg.guided_hand)
        distance = None
        if live_hand is not None:
            distance = weighted_hand_distance(demo.joints, live_hand, cfg.weights)
        self._last_distance = distance
        if distance is None:
            self._last_tolerance = None
            return cfg.max_deceleration

        tol = required_tolerance(demo.speed, cfg)
        self._last_tolerance = tol
        if distance < tol:
            return cfg.max_acceleration * clip((distance - tol) / (0.5 * tol - tol), 0.0, 1.0)
        return cfg.max_deceleration * clip((distance - tol) / (2.0 * tol - tol), 0.0, 1.0)

    def _tick_following(self, dt: float, live_hand: Optional[Mapping[JointId, Pose]]) -> None:
        cfg = self.config
        end = self._timeline.end_time

        accel = self._acceleration(live_hand)
        self._speed = clip(self._speed + accel * dt, 0.0, cfg.max_speed)
        self._estimated = min(self._estimated + self._speed * dt, end)
        self._visualized = min(self._estimated + cfg.lookahead * self._speed, end)
        log.debug("follow t=%.3f v=%.3f d=%s tol=%s", self._estimated, self._speed, self._last_distance, self._last_tolerance)

        if self._estimated >= end:
            self.completed_count += 1
            log.info("guidance run %d complete", self.completed_count)
            if self.on_complete is not None:
                self.on_complete()
            self._enter(GuidanceState.STARTING)
