import io
import math
import re
from datetime import datetime, timezone

import pytest

from handguide import config as C
from handguide.anim.document import AnimationDocument
from handguide.anim.errors import CorruptFormat, MissingJointData
from handguide.anim.models import Handedness, JointId, JointTransform, Pose
from handguide.anim.recording import Keyframe, RecordingBuffer
from handguide.anim.serialization import deserialize, dumps, load, loads, output_filename, save, serialize
from handguide.anim.timeline import Timeline


def _document():
    buf = RecordingBuffer()
    for i in range(6):
        t = 0.1 + i / 30.0
        a = i * 0.3
        rot = (0.0, math.sin(a / 2), 0.0, math.cos(a / 2))
        kf = Keyframe(time=t, left_tracked=i > 1, right_tracked=True, right_pinch=i == 3)
        for j, joint in enumerate((JointId.WRIST, JointId.INDEX_TIP, JointId.THUMB_TIP)):
            p = Pose((0.01 * i + j, 0.2 * j, -0.3), rot)
            kf.right_joints[joint] = JointTransform.from_pose(p, Pose((p.position[0] + 1, 0.5, 0.0), rot))
            if i > 1:
                kf.left_joints[joint] = JointTransform.from_pose(Pose((-p.position[0], 0.1, 0.2), rot))
        kf.objects["cup"] = JointTransform.from_pose(Pose((1.0, i * 0.1, 0.0)))
        kf.camera = JointTransform.from_pose(Pose((0.0, 1.6, 0.0)))
        buf.append(kf)
    doc = AnimationDocument.from_recording(buf)
    doc.reference = JointTransform((0.5, 0.0, 1.0), (0.0, 0.0, 0.0, 1.0), (1.0, 1.0, 1.0), (0.1, 0.2, 0.3), (0.0, 1.0, 0.0, 0.0))
    doc.add_marker(0.05, "grab")
    doc.add_marker(0.15, "release here")
    return doc


def test_roundtrip_reproduces_every_channel():
    doc = _document()
    back = loads(dumps(doc))

    assert back.has_hand_data and back.has_camera_pose and not back.has_eye_gaze
    assert back.reference == doc.reference
    assert [(m.time, m.name) for m in back.markers] == [(m.time, m.name) for m in doc.markers]
    for hand in Handedness:
        src, dst = doc.hand(hand), back.hand(hand)
        assert dst.tracked == src.tracked
        assert dst.pinch == src.pinch
    # right joints share the tracked key grid, so every key comes back as is
    right = doc.hand(Handedness.RIGHT)
    for joint, bundle in right.joints.items():
        assert back.hand(Handedness.RIGHT).joints[joint] == bundle
    assert back.objects["cup"] == doc.objects["cup"]
    assert back.head == doc.head


def test_absent_joints_written_as_identity():
    back = loads(dumps(_document()))
    palm = back.hand(Handedness.RIGHT).joint(JointId.PALM)
    tr = palm.evaluate(0.05)
    assert tr == JointTransform.zero_identity()


def test_left_joints_padded_on_right_grid():
    # left hand only has joint keys from the third frame on
    doc = _document()
    back = loads(dumps(doc))
    wrist = back.hand(Handedness.LEFT).joint(JointId.WRIST)
    assert len(wrist.curves()[0]) == len(doc.hand(Handedness.LEFT).tracked)
    first = doc.hand(Handedness.LEFT).joint(JointId.WRIST).evaluate(0.0)
    assert wrist.evaluate(0.0).position == pytest.approx(first.position)


def test_timeline_from_loaded_document_matches():
    doc = _document()
    a = Timeline.from_document(doc)
    b = Timeline.from_document(loads(dumps(doc)))
    assert a.times == b.times
    for sa, sb in zip(a, b):
        pa = sa.right.pose(JointId.INDEX_TIP).position
        pb = sb.right.pose(JointId.INDEX_TIP).position
        assert pa == pytest.approx(pb)


def test_layout_labels_in_order():
    text = dumps(_document())
    lines = text.splitlines()
    assert lines[0] == str(C.FILE_MAGIC)
    assert lines[1:4] == ["True", "True", "False"]
    labels = [l for l in lines if re.fullmatch(r"[A-Z_]+", l)]
    assert labels == [
        "REFERENCE_COORDINATE_SYSTEM",
        "HEAD_POSES",
        "LEFT_HAND_POSES",
        "RIGHT_HAND_POSES",
        "EYE_GAZE",
        "OBJECT_POSES",
        "MARKER_LIST",
    ]
    i = lines.index("RIGHT_HAND_POSES")
    assert lines[i + 1] == "6"
    assert len(lines[i + 2].split(",")) == 1 + 2 + 17 * 26


def test_bad_magic():
    with pytest.raises(CorruptFormat):
        loads("12345\nTrue\nTrue\nFalse\n")


def test_bad_label():
    text = dumps(_document()).replace("EYE_GAZE", "EYES")
    with pytest.raises(CorruptFormat):
        loads(text)


def test_truncated_file():
    text = dumps(_document())
    with pytest.raises(CorruptFormat):
        loads(text[: len(text) // 2])


def test_short_hand_row_is_missing_joint_data():
    lines = dumps(_document()).splitlines()
    i = lines.index("LEFT_HAND_POSES")
    lines[i + 2] = ", ".join(lines[i + 2].split(", ")[:100])
    with pytest.raises(MissingJointData):
        loads("\n".join(lines) + "\n")


def test_wide_row_is_corrupt_not_missing():
    lines = dumps(_document()).splitlines()
    i = lines.index("HEAD_POSES")
    lines[i + 2] += ", 0.0"
    with pytest.raises(CorruptFormat) as exc:
        loads("\n".join(lines) + "\n")
    assert not isinstance(exc.value, MissingJointData)


def test_serialize_to_stream_and_file(tmp_path):
    doc = _document()
    buf = io.StringIO()
    serialize(doc, buf)
    buf.seek(0)
    assert deserialize(buf).hand(Handedness.RIGHT).tracked == doc.hand(Handedness.RIGHT).tracked

    path = save(doc, str(tmp_path / "sub" / "demo.txt"))
    back = load(path)
    assert back.description == "demo"
    assert back.marker_count == 2


def test_empty_document_roundtrip():
    back = loads(dumps(AnimationDocument()))
    assert back.duration == 0.0
    assert back.hand(Handedness.LEFT).joints == {}
    assert back.objects == {}


def test_output_filename():
    now = datetime(2024, 3, 5, 7, 8, 9, tzinfo=timezone.utc)
    assert output_filename("Take", now=now) == "Take-20240305-070809.txt"
    assert output_filename("Take", append_timestamp=False) == "Take"


def test_multiline_names_rejected():
    doc = _document()
    with pytest.raises(ValueError):
        doc.add_marker(0.1, "step one\nstep two")
    with pytest.raises(ValueError):
        doc.add_marker(0.1, "step one\r")
    assert doc.marker_count == 2

    kf = Keyframe(time=10.0, right_tracked=True)
    kf.objects["cup\nlid"] = JointTransform.zero_identity()
    before = doc.key_count
    with pytest.raises(ValueError):
        doc.append_keyframe(10.0, kf)
    assert doc.key_count == before

    doc.objects["plate\nside"] = doc.objects["cup"].copy()
    with pytest.raises(ValueError):
        dumps(doc)


def test_data_after_marker_list_is_corrupt():
    text = dumps(_document())
    assert loads(text + "\n\n").marker_count == 2
    with pytest.raises(CorruptFormat):
        loads(text + "step two\n")
