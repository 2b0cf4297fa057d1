"""
Rule-based gesture classifier for spell casting.

A digit counts as extended when its tip sits above its proximal joint
(tip.y < joint.y in image space, where y grows downward). The extension
pattern of the five digits is then matched against the spell gestures in
a fixed precedence order.
"""

import logging
from collections import Counter
from typing import Dict

import numpy as np

from spellcaster.core.types import GestureType
from spellcaster.recognition.landmarks import (
    FINGER_EXTENSION_JOINTS, NUM_LANDMARKS, as_landmark_array,
)

logger = logging.getLogger(__name__)


def get_finger_states(landmarks: np.ndarray) -> Dict[str, bool]:
    """Determine which digits are extended.

    Args:
        landmarks: array of shape (21, 2|3)

    Returns:
        dict with finger names -> bool (True = extended)
    """
    return {
        finger: bool(landmarks[tip][1] < landmarks[joint][1])
        for finger, (tip, joint) in FINGER_EXTENSION_JOINTS.items()
    }


def classify_gesture(landmarks) -> GestureType:
    """Classify one landmark set. Pure and deterministic.

    Args:
        landmarks: 21 (x, y[, z]) points, or None / empty when no hand

    Returns:
        GestureType; NONE when no usable hand is present
    """
    arr = as_landmark_array(landmarks)
    if len(arr) < NUM_LANDMARKS:
        if len(arr):
            logger.debug("Incomplete landmark set (%d points), treating as no hand", len(arr))
        return GestureType.NONE

    s = get_finger_states(arr)
    thumb, index, middle, ring, pinky = (
        s["thumb"], s["index"], s["middle"], s["ring"], s["pinky"]
    )

    if not index and not middle and not ring and not pinky:
        return GestureType.FIST

    if thumb and index and middle and ring and pinky:
        return GestureType.PALM

    if index and not middle and not ring and not pinky:
        return GestureType.POINT

    if index and middle and not ring and not pinky:
        return GestureType.PEACE

    if thumb and index and pinky and not middle and not ring:
        return GestureType.ROCK

    return GestureType.UNKNOWN


class GestureClassifier:
    """Stateful wrapper around classify_gesture() for the live pipeline.

    Classification itself stays stateless; the wrapper only remembers the
    last label (for change logging) and keeps per-gesture counts.
    """

    def __init__(self):
        self._last_gesture = GestureType.NONE
        self._counts = Counter()

    def classify(self, landmarks) -> GestureType:
        gesture = classify_gesture(landmarks)
        self._counts[gesture] += 1
        if gesture != self._last_gesture:
            logger.debug("Gesture: %s -> %s", self._last_gesture.value, gesture.value)
            self._last_gesture = gesture
        return gesture

    @property
    def last_gesture(self) -> GestureType:
        return self._last_gesture

    def get_counts(self) -> Dict[str, int]:
        """Classification counts keyed by gesture name."""
        return {g.value: n for g, n in self._counts.items()}

    def reset(self):
        self._last_gesture = GestureType.NONE
        self._counts.clear()
