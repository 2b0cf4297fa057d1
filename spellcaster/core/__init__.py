"""Core types, event bus, scheduler and game session."""
from .types import GestureType, Spell, CastEvent, HandObservation, SPELL_GESTURES
from .events import EventBus, Events
from .scheduler import Scheduler, TimerHandle

__all__ = [
    "GestureType",
    "Spell",
    "CastEvent",
    "HandObservation",
    "SPELL_GESTURES",
    "EventBus",
    "Events",
    "Scheduler",
    "TimerHandle",
]
