"""Gesture recognition module."""
from .gesture_classifier import GestureClassifier, classify_gesture, get_finger_states
from .landmarks import LandmarkIndex, NUM_LANDMARKS, as_landmark_array, to_screen_coords

__all__ = [
    "GestureClassifier",
    "classify_gesture",
    "get_finger_states",
    "LandmarkIndex",
    "NUM_LANDMARKS",
    "as_landmark_array",
    "to_screen_coords",
]
