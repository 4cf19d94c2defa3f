from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

# MediaPipe FaceMesh eye contours, 16 points per eye starting at the outer corner.
EYE_CONTOURS = {
    "left": (33, 7, 163, 144, 145, 153, 154, 155, 133, 173, 157, 158, 159, 160, 161, 246),
    "right": (362, 382, 381, 380, 374, 373, 390, 249, 263, 466, 388, 387, 386, 385, 384, 398),
}

# Positions inside a contour used for the ratio: (upper lid, lower lid, corner a, corner b)
UPPER_LID, LOWER_LID, CORNER_A, CORNER_B = 1, 5, 0, 8


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class LandmarkFrame:
    """One detector result. ``present`` is False when no face was found."""
    points: Tuple[Point, ...] = field(default_factory=tuple)
    present: bool = True

    @classmethod
    def from_pairs(cls, pairs: Optional[Sequence] = None, present: bool = True):
        if not pairs:
            return cls(points=(), present=False)
        pts = []
        for p in pairs:
            if isinstance(p, Point):
                pts.append(p)
            elif isinstance(p, dict):
                pts.append(Point(float(p["x"]), float(p["y"])))
            else:
                pts.append(Point(float(p[0]), float(p[1])))
        return cls(points=tuple(pts), present=present)

    @classmethod
    def absent(cls):
        return cls(points=(), present=False)

    def __len__(self):
        return len(self.points)

    def __getitem__(self, idx):
        return self.points[idx]


def eye_points(eye: str):
    """Landmark ids (upper, lower, corner_a, corner_b) for ``left`` or ``right``."""
    contour = EYE_CONTOURS[eye]
    return contour[UPPER_LID], contour[LOWER_LID], contour[CORNER_A], contour[CORNER_B]
