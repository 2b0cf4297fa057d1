"""Audio feedback for casts."""
from .audio import SpellAudio

__all__ = ["SpellAudio"]
