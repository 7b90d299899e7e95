import math

import pytest

from handguide.anim.curve import Curve, StepCurve
from handguide.anim.document import AnimationDocument
from handguide.anim.errors import CorruptFormat, OutOfOrderSample
from handguide.anim.models import Handedness, JointId, JointTransform, Pose
from handguide.anim.pose_curves import PoseCurves
from handguide.anim.recording import Keyframe, RecordingBuffer
from handguide.live import StaticPoseSource, hand_points


def test_empty_curve_evaluates_to_zero():
    c = Curve()
    assert len(c) == 0
    assert c.evaluate(3.0) == 0.0
    assert c.duration == 0.0
    assert c.first_time is None


def test_linear_curve_interpolates_and_clamps():
    c = Curve.from_keys([0.0, 1.0, 3.0], [0.0, 2.0, 4.0])
    assert c.evaluate(0.5) == pytest.approx(1.0)
    assert c.evaluate(2.0) == pytest.approx(3.0)
    assert c.evaluate(-10.0) == 0.0
    assert c.evaluate(1e9) == 4.0
    assert c.evaluate(1.0) == 2.0
    assert c.duration == 3.0


def test_step_curve_holds_until_next_key():
    c = StepCurve()
    c.add_bool_key(0.0, False)
    c.add_bool_key(1.0, True)
    c.add_bool_key(2.0, False)
    assert c.kind == "step"
    assert c.evaluate_bool(0.99) is False
    assert c.evaluate_bool(1.0) is True
    assert c.evaluate_bool(1.99) is True
    assert c.evaluate_bool(5.0) is False


def test_add_key_rejects_earlier_time_and_ignores_duplicate():
    c = Curve()
    assert c.add_key(1.0, 1.0)
    assert c.add_key(1.0, 5.0) is False
    assert c.values == [1.0]
    with pytest.raises(OutOfOrderSample):
        c.add_key(0.5, 0.0)


def test_prune_and_copy_are_independent():
    c = Curve.from_keys([0, 1, 2, 3], [0, 1, 2, 3])
    p = c.prune(1.0, 2.0)
    assert p.times == [1.0, 2.0]
    d = c.copy()
    d.add_key(4.0, 4.0)
    assert len(c) == 4 and len(d) == 5


def test_pose_curves_evaluate_raw_and_normalized():
    pc = PoseCurves()
    pc.add_key(0.0, Pose((0, 0, 0), (0, 0, 0, 1)))
    pc.add_key(1.0, Pose((2, 0, 0), (0, 0, 1, 0)))
    raw = pc.evaluate(0.5)
    assert raw.position == pytest.approx((1, 0, 0))
    # channel-wise lerp of two unit quaternions is not unit length
    assert math.sqrt(sum(v * v for v in raw.rotation)) < 0.99
    pose = pc.evaluate_pose(0.5)
    assert math.sqrt(sum(v * v for v in pose.rotation)) == pytest.approx(1.0)
    # no global keys: global frame falls back to local
    assert pc.evaluate_pose(0.5, global_frame=True).position == pytest.approx((1, 0, 0))


def test_pose_curves_from_curves_needs_17():
    with pytest.raises(CorruptFormat):
        PoseCurves.from_curves([Curve()] * 7)


def test_joint_transform_values_roundtrip():
    tr = JointTransform((1, 2, 3), (0, 0, 0, 1), (1, 1, 1), (4, 5, 6), (0, 1, 0, 0))
    assert JointTransform.from_values(tr.values()) == tr
    with pytest.raises(CorruptFormat):
        JointTransform.from_values([0.0] * 16)


def test_joint_parse():
    assert JointId.parse("wrist") is JointId.WRIST
    assert JointId.parse("IndexTip") is JointId.INDEX_TIP
    assert JointId.parse("pinky_tip") is JointId.PINKY_TIP
    assert len(JointId) == 26
    with pytest.raises(KeyError):
        JointId.parse("elbow")


def _frame(t, x, tracked=True):
    kf = Keyframe(time=t, right_tracked=tracked)
    if tracked:
        kf.right_joints[JointId.WRIST] = JointTransform.from_pose(Pose((x, 0.0, 0.0)))
    return kf


def test_document_from_recording_rebases_times():
    buf = RecordingBuffer()
    for i in range(4):
        buf.append(_frame(10.0 + i * 0.5, float(i)))
    doc = AnimationDocument.from_recording(buf)
    hc = doc.hand(Handedness.RIGHT)
    assert hc.tracked.times == [0.0, 0.5, 1.0, 1.5]
    assert doc.has_hand_data
    assert doc.duration == pytest.approx(1.5)
    assert doc.evaluate_hand_joint(0.25, Handedness.RIGHT, JointId.WRIST).position == pytest.approx((0.5, 0, 0))
    # never recorded joint -> zero identity
    assert doc.evaluate_hand_joint(0.25, Handedness.RIGHT, JointId.PALM) == JointTransform.zero_identity()
    assert doc.evaluate_hand_state(0.25, Handedness.LEFT) == (False, False)


def test_recording_buffer_rejects_time_going_backwards():
    buf = RecordingBuffer()
    buf.append(_frame(1.0, 0.0))
    with pytest.raises(OutOfOrderSample):
        buf.append(_frame(0.5, 0.0))


def test_markers_sorted_and_interval_search():
    doc = AnimationDocument()
    doc.add_marker(2.0, "b")
    doc.add_marker(1.0, "a")
    doc.add_marker(3.0, "c")
    assert [m.name for m in doc.markers] == ["a", "b", "c"]
    assert doc.find_marker_interval(0.5) == -1
    assert doc.find_marker_interval(1.0) == 0
    assert doc.find_marker_interval(2.5) == 1
    assert doc.find_marker_interval(10.0) == 2
    doc.remove_marker(0)
    assert doc.marker_count == 2 and doc.marker(0).name == "b"


def test_capture_from_live_source():
    src = StaticPoseSource.from_hands(
        right={JointId.WRIST: Pose((1.0, 0.0, 0.0)), JointId.INDEX_TIP: Pose((1.1, 0.0, 0.0))},
        pinching={Handedness.RIGHT, Handedness.LEFT},
    )
    assert hand_points(src, Handedness.LEFT) is None
    pts = hand_points(src, Handedness.RIGHT)
    assert set(pts) == {JointId.WRIST, JointId.INDEX_TIP}

    buf = RecordingBuffer()
    kf = buf.capture(0.0, src)
    assert kf.right_tracked and kf.right_pinch
    # an untracked hand never reports a pinch
    assert not kf.left_tracked and not kf.left_pinch
    assert kf.right_joints[JointId.INDEX_TIP].global_position == (1.1, 0.0, 0.0)

    src.set_joint_pose(Handedness.RIGHT, JointId.WRIST, Pose((2.0, 0.0, 0.0)))
    src.set_pinching(Handedness.RIGHT, False)
    buf.capture(0.5, src)
    assert len(buf) == 2 and buf.start_time == 0.0 and buf.end_time == 0.5
    buf.clear()
    assert buf.empty()


def test_document_objects_camera_and_prune():
    buf = RecordingBuffer()
    for i in range(5):
        kf = Keyframe(time=float(i), right_tracked=True)
        kf.right_joints[JointId.WRIST] = JointTransform.from_pose(Pose((float(i), 0.0, 0.0)))
        kf.objects["cup"] = JointTransform.from_pose(Pose((0.0, float(i), 0.0)))
        kf.camera = JointTransform.from_pose(Pose((0.0, 1.6, float(i))))
        buf.append(kf)
    doc = AnimationDocument.from_recording(buf)
    doc.add_marker(1.0, "a")
    doc.add_marker(4.0, "b")

    assert doc.has_camera_pose and not doc.has_eye_gaze
    assert doc.evaluate_object(2.5, "cup").position == pytest.approx((0.0, 2.5, 0.0))
    assert doc.evaluate_camera_pose(1.5).position == pytest.approx((0.0, 1.6, 1.5))
    assert doc.evaluate_eye_gaze(1.0) == Pose.identity()
    with pytest.raises(KeyError):
        doc.evaluate_object(0.0, "plate")

    part = doc.prune(1.0, 3.0)
    assert part.earliest_timestamp == 1.0
    assert part.latest_timestamp == 3.0
    assert [m.name for m in part.markers] == ["a"]
    assert doc.latest_timestamp == 4.0
