"""
Sparse time-keyed scalar channels.

Two variants share one key store:
- Curve:     linear interpolation between bracketing keys
- StepCurve: holds each key's value until the next key (tracked / pinch flags)

Both clamp to the first / last key outside the keyed range.
"""
from __future__ import annotations

from bisect import bisect_right
from typing import Iterator, List, Optional, Sequence, Tuple

from .errors import OutOfOrderSample


class Curve:
    kind = "linear"

    def __init__(self):
        self._times: List[float] = []
        self._values: List[float] = []

    @classmethod
    def from_keys(cls, times: Sequence[float], values: Sequence[float]) -> "Curve":
        if len(times) != len(values):
            raise ValueError("times and values must have the same length")
        curve = cls()
        for t, v in zip(times, values):
            curve.add_key(t, v)
        return curve

    # ---------------------- keys ----------------------
    def add_key(self, time: float, value: float) -> bool:
        """
        Append a key. Keys must arrive in time order; a key at exactly the
        last key's time is dropped and False is returned.
        """
        time = float(time)
        if self._times:
            last = self._times[-1]
            if time < last:
                raise OutOfOrderSample(f"key at t={time} is earlier than last key t={last}")
            if time == last:
                return False
        self._times.append(time)
        self._values.append(float(value))
        return True

    def __len__(self) -> int:
        return len(self._times)

    @property
    def times(self) -> List[float]:
        return list(self._times)

    @property
    def values(self) -> List[float]:
        return list(self._values)

    def key(self, i: int) -> Tuple[float, float]:
        return self._times[i], self._values[i]

    def keys(self) -> Iterator[Tuple[float, float]]:
        return zip(self._times, self._values)

    @property
    def first_time(self) -> Optional[float]:
        return self._times[0] if self._times else None

    @property
    def last_time(self) -> Optional[float]:
        return self._times[-1] if self._times else None

    @property
    def duration(self) -> float:
        if not self._times:
            return 0.0
        return self._times[-1] - self._times[0]

    # ---------------------- evaluation ----------------
    def evaluate(self, time: float) -> float:
        n = len(self._times)
        if n == 0:
            return 0.0
        if time <= self._times[0]:
            return self._values[0]
        if time >= self._times[-1]:
            return self._values[-1]
        # times[i-1] <= time < times[i]
        i = bisect_right(self._times, time)
        return self._between(i - 1, i, time)

    def _between(self, a: int, b: int, time: float) -> float:
        t0, t1 = self._times[a], self._times[b]
        u = (time - t0) / (t1 - t0)
        v0, v1 = self._values[a], self._values[b]
        return v0 + (v1 - v0) * u

    # ---------------------- copies --------------------
    def copy(self) -> "Curve":
        out = type(self)()
        out._times = list(self._times)
        out._values = list(self._values)
        return out

    def subset(self, indices: Sequence[int]) -> "Curve":
        """New curve of the same variant holding only the keys at `indices` (ascending)."""
        out = type(self)()
        out._times = [self._times[i] for i in indices]
        out._values = [self._values[i] for i in indices]
        return out

    def prune(self, start: float = float("-inf"), end: float = float("inf")) -> "Curve":
        keep = [i for i, t in enumerate(self._times) if start <= t <= end]
        return self.subset(keep)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Curve):
            return NotImplemented
        return self.kind == other.kind and self._times == other._times and self._values == other._values

    def __repr__(self) -> str:
        return f"{type(self).__name__}(keys={len(self)})"


class StepCurve(Curve):
    kind = "step"

    def _between(self, a: int, b: int, time: float) -> float:
        return self._values[a]

    def add_bool_key(self, time: float, value: bool) -> bool:
        return self.add_key(time, 1.0 if value else 0.0)

    def evaluate_bool(self, time: float) -> bool:
        return self.evaluate(time) > 0.5
