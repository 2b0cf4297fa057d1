"""
Shared domain types for the gesture spellcaster.

Centralizes enums and data classes used across the recognition, casting
and combat packages to eliminate circular imports.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

_INDEX_TIP = 8


# =============================================================================
# Gesture Types
# =============================================================================

class GestureType(Enum):
    """Hand shapes recognized by the classifier."""
    NONE = "none"
    FIST = "fist"
    PALM = "palm"
    POINT = "point"
    PEACE = "peace"
    ROCK = "rock"
    UNKNOWN = "unknown"

    @property
    def is_spell_trigger(self) -> bool:
        return self in SPELL_GESTURES


# Gestures a spell may be bound to
SPELL_GESTURES = frozenset({GestureType.POINT, GestureType.PEACE, GestureType.ROCK})


# =============================================================================
# Data Containers
# =============================================================================

@dataclass(frozen=True)
class Spell:
    """Immutable spell catalog entry."""
    id: str
    name: str
    element: str
    damage: float
    mana_cost: int
    gesture: GestureType
    charge_time_ms: float
    color: str
    particle_color: str
    icon: str = ""


@dataclass(frozen=True)
class CastEvent:
    """A released spell, ready to be turned into a projectile."""
    spell: Spell
    origin: Tuple[float, float]
    timestamp_ms: float


class HandObservation:
    """One detection cycle's worth of hand data from the pose source.

    Landmarks are in screen space: (21, 3) array of x, y pixels and the
    model's relative depth.
    """

    __slots__ = ("landmarks", "confidence", "handedness")

    def __init__(self, landmarks: np.ndarray, confidence: float = 1.0,
                 handedness: str = "unknown"):
        self.landmarks = landmarks
        self.confidence = confidence
        self.handedness = handedness

    def __repr__(self):
        return f"HandObservation({self.handedness}, conf={self.confidence:.2f})"

    @property
    def index_tip(self) -> Optional[Tuple[float, float]]:
        """Screen position of the index fingertip (projectile origin)."""
        if self.landmarks is None or len(self.landmarks) < 21:
            return None
        return float(self.landmarks[_INDEX_TIP][0]), float(self.landmarks[_INDEX_TIP][1])
