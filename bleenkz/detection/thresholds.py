import logging
from typing import NamedTuple

from bleenkz.utils.landmark_buffer import LandmarkBuffer
from bleenkz.utils.smoothing import percentile_value, trailing_mean

logger = logging.getLogger(__name__)

HISTORY_SIZE = 30
MIN_CALIBRATION_SAMPLES = 8
BASELINE_PERCENTILE = 0.75
CLOSED_FACTOR = 0.72
OPEN_FACTOR = 0.88
SMOOTHING_WINDOW = 3
MIN_BASELINE = 1e-6

DEFAULT_BASELINE = 0.3
DEFAULT_CLOSED = 0.2
DEFAULT_OPEN = 0.28


class Thresholds(NamedTuple):
    closed: float
    open: float


INITIAL_THRESHOLDS = Thresholds(closed=DEFAULT_CLOSED, open=DEFAULT_OPEN)


class AdaptiveThresholdTracker:
    """
    Recalibrates closed/open EAR thresholds from the last HISTORY_SIZE samples.

    The baseline is the 75th percentile of the window, so it still describes open
    eyes while a few closed-eye samples sit in the history. The closed/open gap is
    the hysteresis band used by BlinkStateMachine.
    """

    def __init__(self, history_size=HISTORY_SIZE, min_samples=MIN_CALIBRATION_SAMPLES,
                 initial=INITIAL_THRESHOLDS):
        self.history = LandmarkBuffer(size=history_size)
        self.min_samples = min_samples
        self.initial = initial
        self.thresholds = initial
        self.baseline = DEFAULT_BASELINE

    def observe(self, avg_ear):
        self.history.add(float(avg_ear))
        if len(self.history) < self.min_samples:
            return self.thresholds

        baseline = percentile_value(self.history, BASELINE_PERCENTILE)
        if baseline is None or baseline <= MIN_BASELINE:
            # Degenerate window: both thresholds would collapse to 0.
            logger.debug("Skipping recalibration, baseline=%s", baseline)
            return self.thresholds

        self.baseline = baseline
        self.thresholds = Thresholds(closed=baseline * CLOSED_FACTOR, open=baseline * OPEN_FACTOR)
        return self.thresholds

    def smoothed_ear(self, window=SMOOTHING_WINDOW):
        """Mean of the last min(window, len(history)) raw samples."""
        return trailing_mean(self.history, window, default=None)

    def reset(self):
        self.history.clear()
        self.thresholds = self.initial
        self.baseline = DEFAULT_BASELINE

    def __len__(self):
        return len(self.history)
