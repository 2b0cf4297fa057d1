"""
21-point hand landmark layout and coordinate helpers.
"""

import logging
from enum import IntEnum

import numpy as np

logger = logging.getLogger(__name__)

NUM_LANDMARKS = 21


class LandmarkIndex(IntEnum):
    """Hand landmark indices following the MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


# (tip, proximal joint) pairs used for the extension test
FINGER_EXTENSION_JOINTS = {
    "thumb":  (LandmarkIndex.THUMB_TIP, LandmarkIndex.THUMB_MCP),
    "index":  (LandmarkIndex.INDEX_TIP, LandmarkIndex.INDEX_PIP),
    "middle": (LandmarkIndex.MIDDLE_TIP, LandmarkIndex.MIDDLE_PIP),
    "ring":   (LandmarkIndex.RING_TIP, LandmarkIndex.RING_PIP),
    "pinky":  (LandmarkIndex.PINKY_TIP, LandmarkIndex.PINKY_PIP),
}

# MediaPipe bone list, used for drawing the skeleton overlay
HAND_CONNECTIONS = (
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (5, 9), (9, 10), (10, 11), (11, 12),
    (9, 13), (13, 14), (14, 15), (15, 16),
    (13, 17), (17, 18), (18, 19), (19, 20),
    (0, 17),
)


def as_landmark_array(landmarks) -> np.ndarray:
    """Convert any sequence of (x, y[, z]) points to a float (N, 3) array.

    Returns an empty (0, 3) array for None or empty input. A missing z
    column is filled with zeros.
    """
    if landmarks is None:
        return np.zeros((0, 3), dtype=np.float64)
    arr = np.asarray(landmarks, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] not in (2, 3):
        raise ValueError(f"landmarks must have shape (N, 2) or (N, 3), got {arr.shape}")
    if arr.shape[1] == 2:
        arr = np.hstack([arr, np.zeros((arr.shape[0], 1))])
    return arr


def to_screen_coords(landmarks: np.ndarray, frame_width: int, frame_height: int,
                     screen_width: int, screen_height: int, mirror: bool = True) -> np.ndarray:
    """Map model landmarks (frame pixels) onto the game screen.

    The camera view is shown mirrored, so x is flipped to keep the
    on-screen hand under the player's real hand.
    """
    scale_x = screen_width / float(frame_width)
    scale_y = screen_height / float(frame_height)
    out = np.array(landmarks, dtype=np.float64, copy=True)
    out[:, 0] = out[:, 0] * scale_x
    if mirror:
        out[:, 0] = screen_width - out[:, 0]
    out[:, 1] = out[:, 1] * scale_y
    return out
