"""Camera frame acquisition."""
from .camera_manager import CameraManager, list_cameras

__all__ = ["CameraManager", "list_cameras"]
