import random

import pytest

from handguide.anim.models import JointId, Pose
from handguide.anim.timeline import HandSample, Sample, Timeline
from handguide.guidance.controller import (
    GuidanceConfig,
    GuidanceController,
    GuidanceState,
    required_tolerance,
    weighted_hand_distance,
)


def _timeline(duration=2.0, n=21, length=1.0):
    tl = Timeline()
    for i in range(n):
        t = duration * i / (n - 1)
        right = HandSample(tracked=True, joints={JointId.WRIST: Pose((length * i / (n - 1), 0.0, 0.0))})
        tl.add_sample(Sample(time=t, right=right))
    tl.estimate_speeds()
    return tl


def _following(config=None, timeline=None):
    tl = timeline or _timeline()
    c = GuidanceController(config or GuidanceConfig(), tl)
    c.start()
    c.tick(0.0)
    assert c.state is GuidanceState.PREVIEW
    c.tick(tl.duration + 1.0)
    assert c.state is GuidanceState.FOLLOWING
    return c, tl


def _on_track(c, tl, dx=0.0):
    wrist = tl.interpolate_at(c.estimated_time).right.pose(JointId.WRIST)
    return {JointId.WRIST: Pose((wrist.position[0] + dx, 0.0, 0.0))}


def test_config_validates_weights():
    with pytest.raises(ValueError):
        GuidanceConfig(weights=(1.0, 0.0))
    assert GuidanceConfig().weights == (1.0, 0.0, 0.0, 0.0, 0.0, 0.0)


def test_required_tolerance_range():
    cfg = GuidanceConfig()
    assert required_tolerance(0.0, cfg) == pytest.approx(cfg.tight_tolerance)
    assert required_tolerance(5.0, cfg) == pytest.approx(cfg.loose_tolerance)
    mid = (cfg.tight_tolerance_speed + cfg.loose_tolerance_speed) / 2
    assert required_tolerance(mid, cfg) == pytest.approx((cfg.tight_tolerance + cfg.loose_tolerance) / 2)


def test_weighted_distance():
    demo = {JointId.WRIST: Pose((0, 0, 0)), JointId.INDEX_TIP: Pose((0, 1, 0))}
    live = {JointId.WRIST: Pose((3, 4, 0)), JointId.INDEX_TIP: Pose((0, 1, 0))}
    assert weighted_hand_distance(demo, live, (1, 0, 0, 0, 0, 0)) == pytest.approx(5.0)
    assert weighted_hand_distance(demo, live, (0.5, 0, 2.0, 0, 0, 0)) == pytest.approx(2.5)
    # a weighted point missing on one side
    assert weighted_hand_distance(demo, live, (1, 1, 0, 0, 0, 0)) is None


def test_starting_waits_for_timeline():
    c = GuidanceController()
    assert c.tick(0.1) == 0.0
    assert c.state is GuidanceState.STARTING
    c.set_timeline(Timeline())
    c.tick(0.1)
    assert c.state is GuidanceState.STARTING


def test_preview_runs_to_end_then_follows():
    tl = _timeline()
    c = GuidanceController(timeline=tl)
    c.start()
    assert c.tick(0.5) == 0.0
    assert c.state is GuidanceState.PREVIEW
    assert c.tick(0.5) == pytest.approx(0.5)
    assert c.tick(0.5) == pytest.approx(1.0)
    assert c.tick(5.0) == tl.end_time
    assert c.state is GuidanceState.FOLLOWING
    assert c.estimated_time == tl.start_time
    assert c.guidance_speed == 0.0


def test_following_accelerates_when_close():
    c, tl = _following()
    c.tick(0.1, _on_track(c, tl))
    assert c.guidance_speed == pytest.approx(0.1 * c.config.max_acceleration)
    assert c.estimated_time > 0.0
    assert c.last_distance == pytest.approx(0.0)
    assert c.visualization_time == pytest.approx(c.estimated_time + c.config.lookahead * c.guidance_speed)


def test_following_decelerates_when_far():
    c, tl = _following()
    for _ in range(10):
        c.tick(0.1, _on_track(c, tl))
    v = c.guidance_speed
    assert v > 0.0
    c.tick(0.1, _on_track(c, tl, dx=5.0))
    assert c.guidance_speed == pytest.approx(max(v + 0.1 * c.config.max_deceleration, 0.0))


def test_within_tolerance_band_holds_speed():
    c, tl = _following()
    for _ in range(5):
        c.tick(0.1, _on_track(c, tl))
    v = c.guidance_speed
    # exactly at the tolerance: neither accelerate nor decelerate
    tol = c.last_tolerance
    c.tick(0.1, _on_track(c, tl, dx=tol))
    assert c.guidance_speed == pytest.approx(v)


def test_absent_hand_brakes_to_zero_and_stays():
    cfg = GuidanceConfig(max_deceleration=-1.0 / 0.3)
    c, tl = _following(cfg)
    c._speed = 0.5
    seen = []
    for _ in range(100):
        c.tick(0.01, None)
        seen.append(c.guidance_speed)
    assert min(seen) >= 0.0
    assert seen[19] == 0.0
    assert all(v == 0.0 for v in seen[19:])
    assert c.state is GuidanceState.FOLLOWING


def test_speed_bounds_and_monotonic_estimate_random():
    rng = random.Random(7)
    c, tl = _following()
    last_est = c.estimated_time
    for _ in range(2000):
        dt = rng.uniform(0.0, 0.05)
        roll = rng.random()
        if roll < 0.3:
            live = None
        else:
            live = _on_track(c, tl, dx=rng.uniform(-0.6, 0.6))
        c.tick(dt, live)
        assert 0.0 <= c.guidance_speed <= c.config.max_speed
        if c.state is not GuidanceState.FOLLOWING:
            break
        assert c.estimated_time >= last_est
        assert c.visualization_time <= tl.end_time
        last_est = c.estimated_time


def test_negative_dt_is_ignored():
    c, tl = _following()
    c.tick(0.5, _on_track(c, tl))
    est, v = c.estimated_time, c.guidance_speed
    c.tick(-1.0, None)
    assert c.estimated_time == est
    assert c.guidance_speed == v


def test_completion_returns_to_starting():
    done = []
    cfg = GuidanceConfig(max_acceleration=50.0)
    c, tl = _following(cfg)
    c.on_complete = lambda: done.append(True)
    for _ in range(1000):
        c.tick(0.05, _on_track(c, tl))
        if c.state is not GuidanceState.FOLLOWING:
            break
    assert c.state is GuidanceState.STARTING
    assert c.estimated_time == tl.end_time
    assert c.completed_count == 1
    assert done == [True]
    # next cycle starts with a preview again
    c.tick(0.0)
    assert c.state is GuidanceState.PREVIEW


def test_stop_and_seek():
    c, tl = _following()
    c.tick(0.5, _on_track(c, tl))
    c.stop()
    assert c.state is GuidanceState.FINISHED
    assert c.guidance_speed == 0.0
    vis = c.visualization_time
    assert c.tick(1.0, None) == vis

    assert c.seek(10.0) == tl.end_time
    assert c.state is GuidanceState.MANUAL
    assert c.tick(1.0, None) == tl.end_time
    c.seek(0.7)
    assert c.visualization_time == pytest.approx(0.7)

    c.start()
    assert c.state is GuidanceState.STARTING
    assert c.estimated_time == tl.start_time


def test_config_rejects_zero_tolerance():
    with pytest.raises(ValueError):
        GuidanceConfig(tight_tolerance=0.0)
    with pytest.raises(ValueError):
        GuidanceConfig(loose_tolerance=-0.1)
