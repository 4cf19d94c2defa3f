import logging
import os

import cv2
import mediapipe as mp
import numpy as np

from bleenkz import config
from .landmarks import LandmarkFrame, Point

logger = logging.getLogger(__name__)


class FaceMeshLandmarkExtractor:
    """Landmark source backed by the MediaPipe FaceLandmarker task."""

    def __init__(self, model_path=None):
        BaseOptions = mp.tasks.BaseOptions
        FaceLandmarker = mp.tasks.vision.FaceLandmarker
        FaceLandmarkerOptions = mp.tasks.vision.FaceLandmarkerOptions
        VisionRunningMode = mp.tasks.vision.RunningMode

        model_path = os.path.abspath(model_path or config.FACE_LANDMARKER_MODEL)
        if not os.path.exists(model_path):
            raise FileNotFoundError(f"FaceLandmarker model not found: {model_path}")

        options = FaceLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=model_path),
            running_mode=VisionRunningMode.IMAGE,
            num_faces=1,
            min_face_detection_confidence=0.5,
            min_tracking_confidence=0.5,
        )
        self.landmarker = FaceLandmarker.create_from_options(options)
        logger.info("FaceLandmarker loaded from %s", model_path)

    def extract_landmarks(self, frame):
        if frame is None:
            return LandmarkFrame.absent()
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)

        detection_result = self.landmarker.detect(mp_image)
        if not detection_result.face_landmarks:
            return LandmarkFrame.absent()

        lm = detection_result.face_landmarks[0]
        return LandmarkFrame(points=tuple(Point(p.x, p.y) for p in lm), present=True)

    def close(self):
        self.landmarker.close()


def decode_image(data: bytes):
    """JPEG/PNG bytes to a BGR array, or None when the bytes are not an image."""
    arr = np.frombuffer(data, dtype=np.uint8)
    if arr.size == 0:
        return None
    return cv2.imdecode(arr, cv2.IMREAD_COLOR)
