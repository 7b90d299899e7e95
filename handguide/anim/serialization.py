"""
Line-oriented text format for AnimationDocument.

    <magic>
    True|False            has camera pose
    True|False            has hand data
    True|False            has eye gaze
    REFERENCE_COORDINATE_SYSTEM
    17 comma-separated floats
    HEAD_POSES        / count / rows
    LEFT_HAND_POSES   / count / rows   (pinch, tracked, then 17 channels per joint)
    RIGHT_HAND_POSES  / count / rows
    EYE_GAZE          / count / rows
    OBJECT_POSES      / object count / (name line, count, rows) per object
    MARKER_LIST       / marker count / (time line, name line) per marker

Each row is "time, v0, v1, ..." on the key grid of the longest curve of the
block; a curve without a key at that time is evaluated there.
"""
from __future__ import annotations

import io
import logging
import os
from datetime import datetime, timezone
from typing import List, Sequence, TextIO

from .. import config as C
from .curve import Curve, StepCurve
from .document import AnimationDocument, HandCurves, check_name
from .errors import CorruptFormat, MissingJointData, OutOfOrderSample
from .models import Handedness, JointId, JointTransform
from .pose_curves import PoseCurves

log = logging.getLogger(__name__)

HAND_LABELS = {
    Handedness.LEFT: "LEFT_HAND_POSES",
    Handedness.RIGHT: "RIGHT_HAND_POSES",
}
BUNDLE = PoseCurves.CHANNEL_COUNT
HAND_CHANNELS = 2 + BUNDLE * len(JointId)


def _fmt(v: float) -> str:
    return repr(float(v))


# ---------------------- writing -----------------------
def _write_curves(writer: TextIO, curves: Sequence[Curve]) -> None:
    longest = max(curves, key=len, default=None) if curves else None
    if longest is None or len(longest) == 0:
        writer.write("0\n")
        return
    count = len(longest)
    grid = longest.times
    writer.write(f"{count}\n")
    for i, time in enumerate(grid):
        row = [_fmt(time)]
        for curve in curves:
            if len(curve) > i and curve.key(i)[0] == time:
                row.append(_fmt(curve.key(i)[1]))
            else:
                row.append(_fmt(curve.evaluate(time)))
        writer.write(", ".join(row) + "\n")


def _bundle_curves(bundle: PoseCurves, grid: Sequence[float]) -> List[Curve]:
    """
    Channels of a bundle. Unkeyed global channels mirror the local ones (the
    same fallback PoseCurves.evaluate_pose uses); any other unkeyed channel
    gets its identity value on `grid`.
    """
    channels = bundle.curves()
    defaults = JointTransform.zero_identity().values()
    out = []
    for i, (curve, default) in enumerate(zip(channels, defaults)):
        if len(curve) == 0 and i >= 10 and len(channels[i - 10]):
            curve = channels[i - 10]
        elif len(curve) == 0 and grid:
            curve = Curve.from_keys(grid, [default] * len(grid))
        out.append(curve)
    return out


def _write_hand(writer: TextIO, hc: HandCurves) -> None:
    grid = hc.tracked.times
    curves: List[Curve] = [hc.pinch, hc.tracked]
    for joint in JointId:
        bundle = hc.joints.get(joint) or PoseCurves()
        curves.extend(_bundle_curves(bundle, grid))
    _write_curves(writer, curves)


def _write_bundle(writer: TextIO, bundle: PoseCurves) -> None:
    grid = max((c.times for c in bundle.curves()), key=len)
    _write_curves(writer, _bundle_curves(bundle, grid))


def serialize(document: AnimationDocument, writer: TextIO) -> None:
    writer.write(f"{C.FILE_MAGIC}\n")
    writer.write(f"{document.has_camera_pose}\n")
    writer.write(f"{document.has_hand_data}\n")
    writer.write(f"{document.has_eye_gaze}\n")

    writer.write("REFERENCE_COORDINATE_SYSTEM\n")
    writer.write(", ".join(_fmt(v) for v in document.reference.values()) + "\n")

    writer.write("HEAD_POSES\n")
    _write_bundle(writer, document.head)
    for hand in (Handedness.LEFT, Handedness.RIGHT):
        writer.write(HAND_LABELS[hand] + "\n")
        _write_hand(writer, document.hand(hand))
    writer.write("EYE_GAZE\n")
    _write_bundle(writer, document.gaze)

    writer.write("OBJECT_POSES\n")
    writer.write(f"{len(document.objects)}\n")
    for name, bundle in document.objects.items():
        writer.write(f"{check_name(name)}\n")
        _write_bundle(writer, bundle)

    writer.write("MARKER_LIST\n")
    writer.write(f"{document.marker_count}\n")
    for marker in document.markers:
        writer.write(f"{_fmt(marker.time)}\n")
        writer.write(f"{marker.name}\n")


# ---------------------- reading -----------------------
class _Lines:
    def __init__(self, reader: TextIO):
        self._reader = reader
        self.lineno = 0

    def next(self) -> str:
        line = self._reader.readline()
        if not line:
            raise CorruptFormat(f"unexpected end of file after line {self.lineno}")
        self.lineno += 1
        return line.rstrip("\r\n")

    def label(self, expected: str) -> None:
        got = self.next().strip()
        if got != expected:
            raise CorruptFormat(f"line {self.lineno}: expected {expected}, got {got!r}")

    def integer(self) -> int:
        raw = self.next().strip()
        try:
            value = int(raw)
        except ValueError:
            raise CorruptFormat(f"line {self.lineno}: expected an integer, got {raw!r}") from None
        if value < 0:
            raise CorruptFormat(f"line {self.lineno}: negative count {value}")
        return value

    def boolean(self) -> bool:
        raw = self.next().strip().lower()
        if raw not in ("true", "false"):
            raise CorruptFormat(f"line {self.lineno}: expected True/False, got {raw!r}")
        return raw == "true"

    def floats(self) -> List[float]:
        raw = self.next()
        try:
            return [float(x) for x in raw.split(",")]
        except ValueError:
            raise CorruptFormat(f"line {self.lineno}: bad number in {raw[:60]!r}") from None

    def expect_end(self) -> None:
        for line in iter(self._reader.readline, ""):
            self.lineno += 1
            if line.strip():
                raise CorruptFormat(f"line {self.lineno}: unexpected data after the marker list")


def _read_curves(lines: _Lines, curve_count: int, step_channels: Sequence[int] = (), short_error=CorruptFormat) -> List[Curve]:
    count = lines.integer()
    curves: List[Curve] = [StepCurve() if j in step_channels else Curve() for j in range(curve_count)]
    for _ in range(count):
        row = lines.floats()
        if len(row) != curve_count + 1:
            err = short_error if len(row) < curve_count + 1 else CorruptFormat
            raise err(f"line {lines.lineno}: expected {curve_count + 1} values, got {len(row)}")
        time = row[0]
        try:
            for curve, value in zip(curves, row[1:]):
                curve.add_key(time, value)
        except OutOfOrderSample as e:
            raise CorruptFormat(f"line {lines.lineno}: {e}") from None
    return curves


def _read_hand(lines: _Lines) -> HandCurves:
    curves = _read_curves(lines, HAND_CHANNELS, step_channels=(0, 1), short_error=MissingJointData)
    hc = HandCurves()
    hc.pinch, hc.tracked = curves[0], curves[1]
    if len(hc.tracked):
        for i, joint in enumerate(JointId):
            start = 2 + BUNDLE * i
            hc.joints[joint] = PoseCurves(curves[start:start + BUNDLE])
    return hc


def deserialize(reader: TextIO) -> AnimationDocument:
    lines = _Lines(reader)
    raw = lines.next().strip()
    try:
        magic = int(raw)
    except ValueError:
        magic = None
    if magic != C.FILE_MAGIC:
        raise CorruptFormat("not a hand animation file (bad magic number)")

    doc = AnimationDocument()
    doc.has_camera_pose = lines.boolean()
    doc.has_hand_data = lines.boolean()
    doc.has_eye_gaze = lines.boolean()

    lines.label("REFERENCE_COORDINATE_SYSTEM")
    values = lines.floats()
    if len(values) != JointTransform.VALUE_COUNT:
        raise CorruptFormat(f"line {lines.lineno}: reference block needs 17 values, got {len(values)}")
    doc.reference = JointTransform.from_values(values)

    lines.label("HEAD_POSES")
    doc.head = PoseCurves(_read_curves(lines, BUNDLE))
    for hand in (Handedness.LEFT, Handedness.RIGHT):
        lines.label(HAND_LABELS[hand])
        doc.hands[hand] = _read_hand(lines)
    lines.label("EYE_GAZE")
    doc.gaze = PoseCurves(_read_curves(lines, BUNDLE))

    lines.label("OBJECT_POSES")
    for _ in range(lines.integer()):
        name = lines.next()
        doc.objects[name] = PoseCurves(_read_curves(lines, BUNDLE))

    lines.label("MARKER_LIST")
    for _ in range(lines.integer()):
        raw = lines.next().strip()
        try:
            time = float(raw)
        except ValueError:
            raise CorruptFormat(f"line {lines.lineno}: bad marker time {raw!r}") from None
        doc.add_marker(time, lines.next())
    lines.expect_end()
    return doc


# ---------------------- helpers -----------------------
def dumps(document: AnimationDocument) -> str:
    buf = io.StringIO()
    serialize(document, buf)
    return buf.getvalue()


def loads(text: str) -> AnimationDocument:
    return deserialize(io.StringIO(text))


def save(document: AnimationDocument, path: str) -> str:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        serialize(document, f)
    log.info("saved %s (%.2fs, %d markers)", path, document.duration, document.marker_count)
    return path


def load(path: str) -> AnimationDocument:
    with open(path, "r", encoding="utf-8") as f:
        doc = deserialize(f)
    doc.description = os.path.splitext(os.path.basename(path))[0]
    log.info("loaded %s (%.2fs)", path, doc.duration)
    return doc


def output_filename(base: str = "HandAnimation", append_timestamp: bool = True, now: datetime = None) -> str:
    if not append_timestamp:
        return base
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d-%H%M%S")
    return f"{base}-{stamp}.{C.FILE_EXTENSION}"
