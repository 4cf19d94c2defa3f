import logging
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)

TOKEN_START = 0.00001
TOKEN_PER_BLINK = 0.00001


@dataclass(frozen=True)
class Achievement:
    count: int
    title: str
    description: str


ACHIEVEMENTS = [
    Achievement(50, "First Flight", "You've taken your first steps into the cosmos!"),
    Achievement(100, "Orbit Breaker", "Breaking through the atmosphere!"),
    Achievement(200, "Star Seeker", "Navigating through the stellar void!"),
    Achievement(500, "Galaxy Rider", "Riding the cosmic waves!"),
    Achievement(1000, "Master of the Cosmos", "You are one with the universe!"),
]


class BlinkSession:
    """Blink counter with milestone achievements and a simulated token reward."""

    def __init__(self, achievements=None, clock=time.time):
        self.achievements = list(ACHIEVEMENTS if achievements is None else achievements)
        self._clock = clock
        self.reset()

    def on_blink(self, event):
        """BlinkEvent subscriber. Returns the achievement unlocked by this blink, if any."""
        self.blink_count += 1
        self.token_amount += TOKEN_PER_BLINK
        unlocked = self.check_achievements()
        if unlocked:
            self.last_unlocked = unlocked
            logger.info("Achievement unlocked: %s (%d blinks)", unlocked.title, unlocked.count)
        return unlocked

    def check_achievements(self):
        for achievement in self.achievements:
            if self.blink_count == achievement.count and achievement.count not in self.unlocked:
                self.unlocked.add(achievement.count)
                return achievement
        return None

    def elapsed(self):
        secs = int(self._clock() - self.started_at)
        return f"{secs // 60:02d}:{secs % 60:02d}"

    def reset(self):
        self.blink_count = 0
        self.token_amount = TOKEN_START
        self.unlocked = set()
        self.last_unlocked = None
        self.started_at = self._clock()

    def snapshot(self):
        return {
            "blink_count": self.blink_count,
            "token_amount": round(self.token_amount, 5),
            "achievements": sorted(self.unlocked),
            "last_achievement": self.last_unlocked.title if self.last_unlocked else None,
            "session_time": self.elapsed(),
        }
