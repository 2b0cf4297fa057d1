"""
MediaPipe hand detection wrapper.

Turns a camera frame into a HandObservation in game-screen pixels, or
None when no hand is in view.
"""

import logging
from typing import Optional

import cv2
import numpy as np
import mediapipe as mp

from spellcaster.core.types import HandObservation
from spellcaster.recognition.landmarks import NUM_LANDMARKS, to_screen_coords
from spellcaster.utils.logger import log_timing

logger = logging.getLogger(__name__)


class HandDetector:
    """MediaPipe Hands wrapper tuned for a single casting hand."""

    def __init__(self, config: dict, screen_size=(1280, 720), mirror: bool = True):
        self._model_complexity = config.get("model_complexity", 0)
        self._max_hands = config.get("max_num_hands", 1)
        self._min_detect_conf = config.get("min_detection_confidence", 0.8)
        self._min_track_conf = config.get("min_tracking_confidence", 0.5)

        self._screen_w, self._screen_h = screen_size
        self._mirror = mirror

        self._mp_hands = mp.solutions.hands
        self._hands = None
        self._initialized = False

    def initialize(self):
        """Initialize MediaPipe Hands solution."""
        self._hands = self._mp_hands.Hands(
            static_image_mode=False,
            model_complexity=self._model_complexity,
            max_num_hands=self._max_hands,
            min_detection_confidence=self._min_detect_conf,
            min_tracking_confidence=self._min_track_conf,
        )
        self._initialized = True
        logger.info(
            "MediaPipe Hands initialized (complexity=%d, max_hands=%d, "
            "detect_conf=%.2f, track_conf=%.2f)",
            self._model_complexity, self._max_hands,
            self._min_detect_conf, self._min_track_conf,
        )

    def set_screen_size(self, width: int, height: int):
        self._screen_w, self._screen_h = int(width), int(height)

    @log_timing
    def detect(self, bgr_frame: np.ndarray) -> Optional[HandObservation]:
        """Run hand detection on a BGR camera frame.

        Returns:
            HandObservation for the first detected hand, or None
        """
        if not self._initialized:
            self.initialize()

        rgb = cv2.cvtColor(bgr_frame, cv2.COLOR_BGR2RGB)
        # Set frame as non-writable for performance
        rgb.flags.writeable = False
        results = self._hands.process(rgb)

        if not results or not results.multi_hand_landmarks:
            return None

        frame_h, frame_w = bgr_frame.shape[:2]
        return self.observation_from_landmarks(
            results.multi_hand_landmarks[0],
            results.multi_handedness[0] if results.multi_handedness else None,
            frame_w, frame_h,
        )

    def observation_from_landmarks(self, hand_landmarks, handedness,
                                   frame_w: int, frame_h: int) -> Optional[HandObservation]:
        """Convert one MediaPipe hand result to screen-space pixels."""
        points = np.array(
            [(lm.x * frame_w, lm.y * frame_h, lm.z) for lm in hand_landmarks.landmark],
            dtype=np.float64,
        )
        if len(points) < NUM_LANDMARKS:
            logger.debug("Incomplete hand: %d landmarks", len(points))
            return None

        screen = to_screen_coords(points, frame_w, frame_h,
                                  self._screen_w, self._screen_h, mirror=self._mirror)

        label, score = "unknown", 1.0
        if handedness is not None and handedness.classification:
            label = handedness.classification[0].label.lower()
            score = float(handedness.classification[0].score)
        return HandObservation(screen, confidence=score, handedness=label)

    def close(self):
        """Release MediaPipe resources."""
        if self._hands:
            self._hands.close()
            self._hands = None
            self._initialized = False
            logger.info("MediaPipe Hands closed")

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *args):
        self.close()
