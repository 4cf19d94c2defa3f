import threading
import time

INITIAL_STATE = {
    "timestamp": None,
    "face_detected": False,
    "detection_confidence": 0,
    "blink_detected": False,
    "blink_count": 0,
    "blinks_per_second": 0.0,
    "pattern": "none",
    "eyes_closed": False,
    "ear": None,
    "smoothed_ear": None,
    "closed_threshold": None,
    "open_threshold": None,
    "token_amount": None,
    "achievements": [],
    "last_achievement": None,
    "message": None,
}


class BlinkStateManager:
    def __init__(self):
        self._lock = threading.Lock()
        self._state = dict(INITIAL_STATE)

    def update(self, data):
        with self._lock:
            self._state.update(data)
            self._state["timestamp"] = time.time()

    def get(self):
        with self._lock:
            return dict(self._state)

    def reset(self):
        with self._lock:
            self._state = dict(INITIAL_STATE)

manager = BlinkStateManager()
