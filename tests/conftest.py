"""
Shared fixtures and landmark factories for the test suite.
"""

import numpy as np
import pytest

from spellcaster.casting.spells import SpellBook
from spellcaster.core.events import EventBus
from spellcaster.core.scheduler import Scheduler
from spellcaster.core.session import GameSession
from spellcaster.core.types import HandObservation
from spellcaster.recognition.landmarks import FINGER_EXTENSION_JOINTS
from spellcaster.resources.ledger import ResourceLedger
from spellcaster.utils.config import Config

# Extended digits per gesture
GESTURE_FINGERS = {
    "fist": (),
    "palm": ("thumb", "index", "middle", "ring", "pinky"),
    "point": ("index",),
    "peace": ("index", "middle"),
    "rock": ("thumb", "index", "pinky"),
}


def make_landmarks(extended=(), tip=(400.0, 300.0)) -> np.ndarray:
    """Create a (21, 3) screen-space hand.

    Each digit's proximal joint sits 60 px below `tip`; an extended digit
    has its tip at `tip` height, a curled one 40 px below the joint. The
    index fingertip lands exactly on `tip` when the index is extended.
    """
    tx, ty = tip
    pts = np.tile([tx, ty + 120.0, 0.0], (21, 1))
    for finger, (tip_idx, joint_idx) in FINGER_EXTENSION_JOINTS.items():
        pts[joint_idx] = [tx, ty + 60.0, 0.0]
        pts[tip_idx] = [tx, ty if finger in extended else ty + 100.0, 0.0]
    return pts


def make_hand(gesture: str, tip=(400.0, 300.0)) -> HandObservation:
    """HandObservation showing one of the named gestures."""
    return HandObservation(make_landmarks(GESTURE_FINGERS[gesture], tip=tip),
                           confidence=0.95, handedness="right")


class EventRecorder:
    """Subscribes to every named event and records (name, kwargs)."""

    def __init__(self, bus: EventBus, names):
        self.events = []
        for name in names:
            bus.subscribe(name, self._handler(name))

    def _handler(self, name):
        def record(**kwargs):
            self.events.append((name, kwargs))
        record.__name__ = f"record_{name}"
        return record

    def names(self):
        return [name for name, _ in self.events]

    def count(self, name):
        return sum(1 for n, _ in self.events if n == name)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def scheduler():
    return Scheduler()


@pytest.fixture
def spell_book():
    return SpellBook.from_entries()


@pytest.fixture
def ledger(bus):
    return ResourceLedger(Config().resources, bus)


@pytest.fixture
def session(bus):
    """Started session on a 1280x720 arena with a seeded RNG."""
    s = GameSession(Config(), event_bus=bus, rng=np.random.default_rng(0))
    s.start()
    yield s
    s.stop()
