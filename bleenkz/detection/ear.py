import logging
import math

from .landmarks import eye_points

logger = logging.getLogger(__name__)

DEFAULT_EAR = 0.3


def eye_aspect_ratio(frame, eye):
    """
    Openness of one eye: lid separation over corner separation.
    Malformed frames and a zero eye width give DEFAULT_EAR instead of raising.
    """
    try:
        upper_id, lower_id, corner_a_id, corner_b_id = eye_points(eye)
        upper = frame[upper_id]
        lower = frame[lower_id]
        corner_a = frame[corner_a_id]
        corner_b = frame[corner_b_id]

        width = abs(corner_a.x - corner_b.x)
        height = abs(upper.y - lower.y)
        if width == 0:
            return DEFAULT_EAR

        ear = height / width
    except (IndexError, KeyError, AttributeError, TypeError) as e:
        logger.warning("EAR fallback for %s eye: %s", eye, e)
        return DEFAULT_EAR

    if not math.isfinite(ear):
        return DEFAULT_EAR
    return ear


def average_ear(frame):
    left = eye_aspect_ratio(frame, "left")
    right = eye_aspect_ratio(frame, "right")
    return (left + right) / 2.0
