import pytest

from bleenkz.detection.blink_detector import BlinkEvent, BlinkState, BlinkStateMachine
from bleenkz.detection.ear import DEFAULT_EAR, average_ear, eye_aspect_ratio
from bleenkz.detection.landmarks import LandmarkFrame, Point
from bleenkz.detection.thresholds import (
    HISTORY_SIZE,
    INITIAL_THRESHOLDS,
    AdaptiveThresholdTracker,
    Thresholds,
)

NUM_LANDMARKS = 478
EYE_WIDTH = 0.1


def make_frame(left_ear=0.3, right_ear=None, left_width=EYE_WIDTH):
    """Face with both eyes placed so each eye's ratio is the requested value."""
    right_ear = left_ear if right_ear is None else right_ear
    pts = [Point(0.5, 0.5) for _ in range(NUM_LANDMARKS)]
    # left eye: corners 33/133, lids 7/153
    pts[33] = Point(0.30, 0.40)
    pts[133] = Point(0.30 + left_width, 0.40)
    pts[7] = Point(0.35, 0.40)
    pts[153] = Point(0.35, 0.40 + left_ear * EYE_WIDTH)
    # right eye: corners 362/263, lids 382/373
    pts[362] = Point(0.60, 0.40)
    pts[263] = Point(0.60 + EYE_WIDTH, 0.40)
    pts[382] = Point(0.65, 0.40)
    pts[373] = Point(0.65, 0.40 + right_ear * EYE_WIDTH)
    return LandmarkFrame(points=tuple(pts), present=True)


def test_ear_ratio_per_eye():
    frame = make_frame(left_ear=0.25, right_ear=0.35)
    assert eye_aspect_ratio(frame, "left") == pytest.approx(0.25)
    assert eye_aspect_ratio(frame, "right") == pytest.approx(0.35)
    assert average_ear(frame) == pytest.approx(0.30)


def test_zero_width_eye_gives_default():
    frame = make_frame(left_ear=0.1, left_width=0.0)
    assert eye_aspect_ratio(frame, "left") == DEFAULT_EAR
    assert eye_aspect_ratio(frame, "left") == 0.3


def test_malformed_frame_gives_default():
    short = LandmarkFrame.from_pairs([(0.1, 0.1)] * 10)
    assert eye_aspect_ratio(short, "left") == DEFAULT_EAR
    assert average_ear(short) == pytest.approx(DEFAULT_EAR)

    broken = LandmarkFrame(points=tuple([None] * NUM_LANDMARKS))
    assert eye_aspect_ratio(broken, "right") == DEFAULT_EAR


def test_from_pairs_accepts_dicts_and_tuples():
    frame = LandmarkFrame.from_pairs([{"x": 0.1, "y": 0.2}, (0.3, 0.4)])
    assert frame.present
    assert frame[0] == Point(0.1, 0.2)
    assert frame[1] == Point(0.3, 0.4)
    assert not LandmarkFrame.from_pairs([]).present


def test_thresholds_hold_until_calibrated():
    tracker = AdaptiveThresholdTracker()
    for _ in range(7):
        assert tracker.observe(0.4) == INITIAL_THRESHOLDS
    calibrated = tracker.observe(0.4)
    assert calibrated.closed == pytest.approx(0.4 * 0.72)
    assert calibrated.open == pytest.approx(0.4 * 0.88)


def test_baseline_is_75th_percentile():
    tracker = AdaptiveThresholdTracker()
    values = [0.10, 0.12, 0.14, 0.20, 0.22, 0.24, 0.30, 0.32]
    for v in values:
        result = tracker.observe(v)
    # floor(0.75 * 8) = 6 -> 0.30
    assert tracker.baseline == pytest.approx(0.30)
    assert result.closed == pytest.approx(0.216)
    assert result.open == pytest.approx(0.264)


@pytest.mark.parametrize("baseline", [0.01, 0.1, 0.3, 0.55, 2.0])
def test_open_threshold_above_closed(baseline):
    tracker = AdaptiveThresholdTracker()
    for _ in range(10):
        t = tracker.observe(baseline)
    assert t.open > t.closed


def test_zero_baseline_keeps_previous_thresholds():
    tracker = AdaptiveThresholdTracker()
    for _ in range(10):
        before = tracker.observe(0.3)
    for _ in range(HISTORY_SIZE):
        after = tracker.observe(0.0)
    assert after == before
    assert after.open > after.closed


def test_history_is_bounded():
    tracker = AdaptiveThresholdTracker()
    for i in range(100):
        tracker.observe(0.2 + i * 0.001)
    assert len(tracker) == HISTORY_SIZE
    assert tracker.history.window()[0] == pytest.approx(0.2 + 70 * 0.001)


def test_smoothed_ear_uses_last_three():
    tracker = AdaptiveThresholdTracker()
    assert tracker.smoothed_ear() is None
    tracker.observe(0.3)
    assert tracker.smoothed_ear() == pytest.approx(0.3)
    tracker.observe(0.3)
    tracker.observe(0.3)
    tracker.observe(0.15)
    assert tracker.smoothed_ear() == pytest.approx(0.25)


def test_state_machine_emits_on_closure_only():
    machine = BlinkStateMachine()
    t = Thresholds(closed=0.2, open=0.28)
    assert machine.update(0.3, t, ts=0) is None
    event = machine.update(0.1, t, ts=10)
    assert event == BlinkEvent(timestamp=10)
    assert machine.state == BlinkState.CLOSED
    assert machine.update(0.3, t, ts=20) is None
    assert machine.state == BlinkState.OPEN


def test_hysteresis_band_does_not_chatter():
    machine = BlinkStateMachine()
    t = Thresholds(closed=0.2, open=0.28)
    eps = 0.01
    events = []
    for i in range(200):
        value = t.closed - eps if i % 2 == 0 else t.closed + eps
        ev = machine.update(value, t, ts=i)
        if ev:
            events.append(ev)
    assert len(events) == 1


def test_reopen_then_close_gives_second_blink():
    machine = BlinkStateMachine()
    t = Thresholds(closed=0.2, open=0.28)
    seq = [0.3, 0.1, 0.25, 0.1, 0.3, 0.1]
    events = [machine.update(v, t, ts=i) for i, v in enumerate(seq)]
    assert [e.timestamp for e in events if e] == [1, 5]
