"""Hand detection module using MediaPipe."""
from .hand_detector import HandDetector

__all__ = ["HandDetector"]
