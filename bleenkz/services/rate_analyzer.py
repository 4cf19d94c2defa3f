from collections import deque
from typing import NamedTuple

from bleenkz import config
from bleenkz.utils.landmark_buffer import LandmarkBuffer

RATE_WINDOW_MS = 5000.0
RECENT_BLINKS = 10
MIN_RECENT_BLINKS = 5
MIN_WINDOW_BLINKS = 3
FAST_INTERVAL_MS = 500.0
SLOW_INTERVAL_MS = 2000.0
RHYTHM_TOLERANCE = 0.2

PATTERN_NONE = "none"
PATTERN_FAST = "fast"
PATTERN_SLOW = "slow"
PATTERN_RHYTHMIC = "pattern"


class BlinkStats(NamedTuple):
    blinks_per_second: float
    pattern: str


class RateAnalyzer:
    """
    Blink cadence from event timestamps (ms).

    Rate is a moving average over the trailing RATE_WINDOW_MS. Pattern looks at the
    last RECENT_BLINKS events, restricted to the trailing pattern window.
    """

    def __init__(self, rate_window_ms=RATE_WINDOW_MS, pattern_window_ms=None):
        self.rate_window_ms = rate_window_ms
        self.pattern_window_ms = config.PATTERN_WINDOW_MS if pattern_window_ms is None else pattern_window_ms
        self.rate_times = deque()
        self.recent = LandmarkBuffer(size=RECENT_BLINKS)
        self.last_stats = BlinkStats(0.0, PATTERN_NONE)

    def on_blink_event(self, ts):
        self.rate_times.append(ts)
        self.recent.add(ts)
        self._evict(ts)
        self.last_stats = BlinkStats(self.blinks_per_second(ts), self.classify(ts))
        return self.last_stats

    def _evict(self, now):
        while self.rate_times and now - self.rate_times[0] >= self.rate_window_ms:
            self.rate_times.popleft()

    def blinks_per_second(self, now):
        # read-only; eviction happens on write
        count = sum(1 for t in self.rate_times if now - t < self.rate_window_ms)
        return count / (self.rate_window_ms / 1000.0)

    def stats(self, now):
        return BlinkStats(self.blinks_per_second(now), self.classify(now))

    def classify(self, now):
        if len(self.recent) < MIN_RECENT_BLINKS:
            return PATTERN_NONE
        window = [t for t in self.recent if now - t < self.pattern_window_ms]
        if len(window) < MIN_WINDOW_BLINKS:
            return PATTERN_NONE

        intervals = [b - a for a, b in zip(window, window[1:])]
        avg = sum(intervals) / len(intervals)
        if avg < FAST_INTERVAL_MS:
            return PATTERN_FAST
        if avg > SLOW_INTERVAL_MS:
            return PATTERN_SLOW
        if is_rhythmic(intervals, avg):
            return PATTERN_RHYTHMIC
        return PATTERN_NONE

    def reset(self):
        self.rate_times.clear()
        self.recent.clear()
        self.last_stats = BlinkStats(0.0, PATTERN_NONE)


def is_rhythmic(intervals, avg=None):
    if not intervals:
        return False
    if avg is None:
        avg = sum(intervals) / len(intervals)
    if avg <= 0:
        return False
    return all(abs(i - avg) / avg < RHYTHM_TOLERANCE for i in intervals)
