import csv
import os
from datetime import datetime

from bleenkz import config

class DataLogger:
    """Appends one CSV row per blink event for the current session."""

    def __init__(self, base_dir=None):
        if base_dir is None:
            base_dir = config.LOG_DIR
        os.makedirs(base_dir, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.path = os.path.join(base_dir, f"session_{ts}.csv")
        with open(self.path, "w", newline="") as f:
            w = csv.writer(f)
            w.writerow(["logged_at", "event_ms", "blink_count", "blinks_per_second", "pattern"])

    def log(self, event_ms, blink_count, blinks_per_second, pattern):
        with open(self.path, "a", newline="") as f:
            w = csv.writer(f)
            w.writerow([datetime.now().isoformat(), f"{event_ms:.0f}", blink_count,
                        f"{blinks_per_second:.2f}", pattern])
