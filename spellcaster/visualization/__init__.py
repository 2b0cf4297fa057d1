"""OpenCV game overlay."""
from .renderer import Renderer, hex_to_bgr

__all__ = ["Renderer", "hex_to_bgr"]
