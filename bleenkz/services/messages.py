import logging
import random

from .llm_client import LLMUnavailableError, client as default_client
from .rate_analyzer import PATTERN_FAST, PATTERN_RHYTHMIC, PATTERN_SLOW

logger = logging.getLogger(__name__)

FUNNY_COOLDOWN_MS = 3000.0
FUNNY_CHANCE = 0.3
PATTERN_CHANCE = 0.2

FUNNY_MESSAGES = [
    "Keep blinking, space cadet!",
    "Your eyes are working overtime!",
    "Blinking at light speed!",
    "You're a blinking superstar!",
    "Navigating the blinkiverse!",
    "AI detected: Human blinking pattern!",
    "Are you from another planet?",
    "Bullseye! Perfect blink detected!",
    "Lightning fast blinks!",
    "Welcome to the blink circus!",
    "The blinking performance of a lifetime!",
    "You're painting with blinks!",
    "Blinking to the rhythm of space!",
    "Level up! Blink master!",
    "Champion blinker detected!",
]

PATTERN_MESSAGES = {
    PATTERN_FAST: [
        "Lightning blinks! Slow down there, speed demon!",
        "Running a blink marathon?",
        "Rapid fire blinking detected!",
    ],
    PATTERN_SLOW: [
        "Taking your time with those blinks!",
        "Meditative blinking mode activated!",
        "Getting sleepy there?",
    ],
    PATTERN_RHYTHMIC: [
        "Blinking to the beat!",
        "The rhythm of the blink circus!",
        "A blinking performance!",
    ],
}

FUNNY_PROMPT = (
    "You are a playful assistant for a blink counter app called Bleenkz.\n"
    "Generate a very short, fun, positive one-liner (max 10 words) to motivate the user.\n"
    "Avoid emojis. Keep it family-friendly."
)


def generate_text(prompt, model=None, options=None, fallback=None, llm=None):
    """
    Model text with a local fallback. Returns (text, source) where source is
    ``model`` or ``fallback``.
    """
    llm = llm or default_client
    try:
        return llm.generate(prompt, model=model, options=options), "model"
    except LLMUnavailableError as e:
        logger.warning("Using fallback text: %s", e)
    if fallback is None:
        fallback = random.choice(FUNNY_MESSAGES)
    return fallback, "fallback"


def smart_funny_message(default, llm=None):
    text, _ = generate_text(FUNNY_PROMPT, fallback=default, llm=llm)
    return text


class MessageBoard:
    """Picks flavor lines after blinks, rate-limited like the on-screen bubble."""

    def __init__(self, rng=None, llm=None, cooldown_ms=FUNNY_COOLDOWN_MS):
        self.rng = rng or random.Random()
        self.llm = llm
        self.cooldown_ms = cooldown_ms
        self.last_shown = None

    def on_blink(self, ts, use_model=False):
        if self.last_shown is not None and ts - self.last_shown < self.cooldown_ms:
            return None
        if self.rng.random() >= FUNNY_CHANCE:
            return None
        line = self.rng.choice(FUNNY_MESSAGES)
        if use_model:
            line = smart_funny_message(line, llm=self.llm)
        self.last_shown = ts
        return line

    def pattern_line(self, pattern):
        lines = PATTERN_MESSAGES.get(pattern)
        if not lines:
            return None
        return self.rng.choice(lines)

    def on_pattern(self, pattern):
        if pattern not in PATTERN_MESSAGES or self.rng.random() >= PATTERN_CHANCE:
            return None
        return self.pattern_line(pattern)
