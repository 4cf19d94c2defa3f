import logging
import time
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class BlinkState(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class BlinkEvent:
    timestamp: float


def now_ms():
    return time.time() * 1000.0


class BlinkStateMachine:
    """
    Two-state eyelid tracker with hysteresis.

    OPEN -> CLOSED when the smoothed EAR drops below the closed threshold, and that
    transition is the blink. CLOSED -> OPEN needs the EAR to climb above the open
    threshold; anything in between keeps the current state.
    """

    def __init__(self):
        self.state = BlinkState.OPEN
        self.closed_since = None

    def update(self, smoothed_ear, thresholds, ts=None):
        if ts is None:
            ts = now_ms()
        if self.state == BlinkState.OPEN:
            if smoothed_ear < thresholds.closed:
                self.state = BlinkState.CLOSED
                self.closed_since = ts
                logger.info("Blink at %.0f (ear=%.3f closed=%.3f)", ts, smoothed_ear, thresholds.closed)
                return BlinkEvent(timestamp=ts)
        elif smoothed_ear > thresholds.open:
            self.state = BlinkState.OPEN
            logger.debug("Eyes open after %.0f ms", ts - (self.closed_since or ts))
            self.closed_since = None
        return None

    @property
    def eyes_closed(self):
        return self.state == BlinkState.CLOSED

    def reset(self):
        self.state = BlinkState.OPEN
        self.closed_since = None
