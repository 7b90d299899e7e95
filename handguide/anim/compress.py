"""
Bounded-error keyframe reduction (Ramer-Douglas-Peucker) for co-indexed curves.

Every function takes the channel curves of one group (x/y/z or x/y/z/w),
returns new curves of the same variant and never touches its inputs. The
first and last keys, and every partition boundary, are always kept.
"""
from __future__ import annotations

import math
from typing import Callable, List, Sequence, Tuple

import numpy as np

from .curve import Curve

# deviation(values, times, start, end) -> (index of worst interior key, violates?)
Deviation = Callable[[np.ndarray, np.ndarray, int, int], Tuple[int, bool]]


def _stack_channels(curves: Sequence[Curve]) -> Tuple[np.ndarray, np.ndarray]:
    n = len(curves[0])
    for c in curves[1:]:
        if len(c) != n:
            raise ValueError(f"co-indexed curves differ in length ({len(c)} != {n})")
    times = np.asarray(curves[0].times, dtype=np.float64)
    for c in curves[1:]:
        if not np.array_equal(np.asarray(c.times, dtype=np.float64), times):
            raise ValueError("co-indexed curves do not share a time grid")
    values = np.column_stack([np.asarray(c.values, dtype=np.float64) for c in curves]) if n else np.zeros((0, len(curves)))
    return times, values


def _partitions(n: int, size: int) -> List[Tuple[int, int]]:
    """[0, p], [p, 2p], ..., [kp, n-1]; size <= 0 means one span."""
    if size <= 0 or size >= n - 1:
        return [(0, n - 1)]
    spans = []
    start = 0
    while start < n - 1:
        end = min(start + size, n - 1)
        spans.append((start, end))
        start = end
    return spans


def _reduce(times: np.ndarray, values: np.ndarray, deviation: Deviation, partition_size: int) -> np.ndarray:
    n = len(times)
    keep = np.zeros(n, dtype=bool)
    keep[0] = keep[-1] = True

    for start, end in _partitions(n, partition_size):
        keep[start] = keep[end] = True
        stack = [(start, end)]
        while stack:
            s, e = stack.pop()
            if e - s < 2:
                continue
            worst, violates = deviation(values, times, s, e)
            if violates:
                keep[worst] = True
                stack.append((s, worst))
                stack.append((worst, e))
    return np.flatnonzero(keep)


def _span_fraction(times: np.ndarray, s: int, e: int) -> np.ndarray:
    return (times[s + 1:e] - times[s]) / (times[e] - times[s])


def _lerp_span(values: np.ndarray, times: np.ndarray, s: int, e: int) -> np.ndarray:
    u = _span_fraction(times, s, e)[:, None]
    return values[s] + (values[e] - values[s]) * u


def _unit_rows(v: np.ndarray) -> np.ndarray:
    n = np.linalg.norm(v, axis=1, keepdims=True)
    n[n < 1e-12] = 1.0
    return v / n


def _slerp_span(values: np.ndarray, times: np.ndarray, s: int, e: int) -> np.ndarray:
    a = values[s] / max(np.linalg.norm(values[s]), 1e-12)
    b = values[e] / max(np.linalg.norm(values[e]), 1e-12)
    d = float(np.dot(a, b))
    if d < 0.0:
        b = -b
        d = -d
    u = _span_fraction(times, s, e)[:, None]
    if d > 0.9995:
        return _unit_rows(a + (b - a) * u)
    theta = math.acos(min(d, 1.0))
    sin_theta = math.sin(theta)
    w1 = np.sin((1.0 - u) * theta) / sin_theta
    w2 = np.sin(u * theta) / sin_theta
    return _unit_rows(a * w1 + b * w2)


def _position_deviation(threshold: float) -> Deviation:
    limit = threshold * threshold

    def deviation(values, times, s, e):
        diff = values[s + 1:e] - _lerp_span(values, times, s, e)
        d2 = np.einsum("ij,ij->i", diff, diff)
        i = int(np.argmax(d2))
        return s + 1 + i, bool(d2[i] > limit)

    return deviation


def _direction_deviation(threshold_deg: float) -> Deviation:
    cos_limit = math.cos(math.radians(threshold_deg))

    def deviation(values, times, s, e):
        interp = _unit_rows(_lerp_span(values, times, s, e))
        actual = _unit_rows(values[s + 1:e])
        dots = np.einsum("ij,ij->i", actual, interp)
        i = int(np.argmin(dots))
        return s + 1 + i, bool(dots[i] < cos_limit)

    return deviation


def _rotation_deviation(threshold_deg: float) -> Deviation:
    comp = math.sqrt((math.cos(math.radians(threshold_deg)) + 1.0) / 2.0)

    def deviation(values, times, s, e):
        actual = _unit_rows(values[s + 1:e])
        # curves are played back channel-wise and renormalised, so the
        # simplified span must stay within bounds of both the slerp and the nlerp
        slerped = np.abs(np.einsum("ij,ij->i", actual, _slerp_span(values, times, s, e)))
        nlerped = np.abs(np.einsum("ij,ij->i", actual, _unit_rows(_lerp_span(values, times, s, e))))
        dots = np.minimum(slerped, nlerped)
        i = int(np.argmin(dots))
        return s + 1 + i, bool(dots[i] < comp)

    return deviation


def _simplify(curves: Sequence[Curve], deviation: Deviation, partition_size: int) -> Tuple[Curve, ...]:
    times, values = _stack_channels(curves)
    if len(times) < 3:
        return tuple(c.copy() for c in curves)
    keep = _reduce(times, values, deviation, int(partition_size)).tolist()
    return tuple(c.subset(keep) for c in curves)


def simplify_positions(cx: Curve, cy: Curve, cz: Curve, threshold: float, partition_size: int = 0) -> Tuple[Curve, Curve, Curve]:
    """Drop keys whose position lies within `threshold` (Euclidean) of the linear interpolation."""
    return _simplify((cx, cy, cz), _position_deviation(threshold), partition_size)


def simplify_directions(cx: Curve, cy: Curve, cz: Curve, threshold_deg: float, partition_size: int = 0) -> Tuple[Curve, Curve, Curve]:
    """Drop keys whose direction lies within `threshold_deg` of the normalised interpolation."""
    return _simplify((cx, cy, cz), _direction_deviation(threshold_deg), partition_size)


def simplify_rotations(cx: Curve, cy: Curve, cz: Curve, cw: Curve, threshold_deg: float, partition_size: int = 0) -> Tuple[Curve, Curve, Curve, Curve]:
    """Drop keys whose orientation lies within `threshold_deg` of the interpolated orientation."""
    return _simplify((cx, cy, cz, cw), _rotation_deviation(threshold_deg), partition_size)
