import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from bleenkz.detection.blink_detector import BlinkEvent, BlinkStateMachine, now_ms
from bleenkz.detection.ear import average_ear
from bleenkz.detection.thresholds import AdaptiveThresholdTracker, Thresholds
from bleenkz.utils.smoothing import clamp
from .rate_analyzer import BlinkStats, RateAnalyzer

logger = logging.getLogger(__name__)

CONFIDENCE_GAIN = 2
CONFIDENCE_DECAY = 1


@dataclass
class FrameResult:
    timestamp: float
    face_detected: bool
    ear: Optional[float] = None
    smoothed_ear: Optional[float] = None
    thresholds: Optional[Thresholds] = None
    event: Optional[BlinkEvent] = None
    stats: Optional[BlinkStats] = None

    @property
    def blink_detected(self):
        return self.event is not None


class BlinkPipeline:
    """
    Landmarks -> EAR -> thresholds -> state machine -> rate analyzer, one frame at a time.

    Frames are serialized: one that arrives while another is in flight is dropped.
    Subscribers get every BlinkEvent; a failing subscriber is logged and skipped.
    """

    def __init__(self, tracker=None, machine=None, analyzer=None):
        self.tracker = tracker or AdaptiveThresholdTracker()
        self.machine = machine or BlinkStateMachine()
        self.analyzer = analyzer or RateAnalyzer()
        self._lock = threading.Lock()
        # guards analyzer state so stat readers never cause a frame drop
        self._stats_lock = threading.Lock()
        self._subscribers: List[Callable[[BlinkEvent], None]] = []
        self.blink_count = 0
        self.dropped_frames = 0
        self.detection_confidence = 0
        self.is_detecting = False
        self.last_result: Optional[FrameResult] = None
        self.last_ts: Optional[float] = None

    def subscribe(self, callback):
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def process_frame(self, frame, ts=None):
        if not self._lock.acquire(blocking=False):
            self.dropped_frames += 1
            logger.debug("Frame dropped, pipeline busy (%d dropped)", self.dropped_frames)
            return None
        try:
            result = self._process(frame, now_ms() if ts is None else ts)
        finally:
            self._lock.release()
        if result.event is not None:
            self._notify(result.event)
        return result

    def _advance_clock(self, ts):
        self.last_ts = ts if self.last_ts is None else max(self.last_ts, ts)

    def _process(self, frame, ts):
        self._advance_clock(ts)
        if frame is None or not frame.present:
            self.is_detecting = False
            self.detection_confidence = clamp(self.detection_confidence - CONFIDENCE_DECAY, 0, 100)
            self.last_result = FrameResult(timestamp=ts, face_detected=False,
                                           thresholds=self.tracker.thresholds,
                                           stats=self.analyzer.last_stats)
            return self.last_result

        self.is_detecting = True
        self.detection_confidence = clamp(self.detection_confidence + CONFIDENCE_GAIN, 0, 100)

        ear = average_ear(frame)
        thresholds = self.tracker.observe(ear)
        smoothed = self.tracker.smoothed_ear()
        if smoothed is None:
            smoothed = ear
        logger.debug("ear=%.3f smoothed=%.3f closed=%.3f open=%.3f",
                     ear, smoothed, thresholds.closed, thresholds.open)

        event = self.machine.update(smoothed, thresholds, ts)
        stats = self._emit(event) if event else self.analyzer.last_stats

        self.last_result = FrameResult(timestamp=ts, face_detected=True, ear=ear,
                                       smoothed_ear=smoothed, thresholds=thresholds,
                                       event=event, stats=stats)
        return self.last_result

    def register_manual_blink(self, ts=None):
        """Counts a blink without landmarks, e.g. from a test button."""
        event = BlinkEvent(timestamp=now_ms() if ts is None else ts)
        with self._lock:
            self._emit(event)
        self._notify(event)
        return event

    def _emit(self, event):
        self.blink_count += 1
        self._advance_clock(event.timestamp)
        with self._stats_lock:
            return self.analyzer.on_blink_event(event.timestamp)

    def _notify(self, event):
        # runs outside the frame lock, so callbacks may call back into the pipeline
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.warning("Blink subscriber %r failed: %s", callback, e)

    def blink_stats(self, now=None):
        """Rate and pattern as of ``now``, defaulting to the latest frame time."""
        if now is None:
            now = self.last_ts if self.last_ts is not None else now_ms()
        with self._stats_lock:
            return self.analyzer.stats(now)

    def reset(self):
        with self._lock:
            self.tracker.reset()
            self.machine.reset()
            with self._stats_lock:
                self.analyzer.reset()
            self.blink_count = 0
            self.dropped_frames = 0
            self.last_result = None
            self.last_ts = None

    def snapshot(self, now=None):
        stats = self.blink_stats(now)
        res = self.last_result
        thresholds = self.tracker.thresholds
        return {
            "face_detected": self.is_detecting,
            "detection_confidence": self.detection_confidence,
            "blink_count": self.blink_count,
            "blinks_per_second": stats.blinks_per_second,
            "pattern": stats.pattern,
            "eyes_closed": self.machine.eyes_closed,
            "ear": res.ear if res else None,
            "smoothed_ear": res.smoothed_ear if res else None,
            "closed_threshold": thresholds.closed,
            "open_threshold": thresholds.open,
            "baseline_ear": self.tracker.baseline,
            "dropped_frames": self.dropped_frames,
        }
