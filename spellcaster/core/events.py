"""
Lightweight event bus between the simulation core and its sinks.

The core publishes casts, hits, defeats and resource changes; the HUD,
audio and combat log subscribe. Sinks never block the core: handler
errors are logged and dropped.

Usage:
    bus = EventBus()
    bus.subscribe(Events.SPELL_CAST, my_handler)
    bus.emit(Events.SPELL_CAST, spell=fireball, origin=(320, 240))
"""

import time
import logging
import threading
from collections import defaultdict
from typing import Callable

logger = logging.getLogger(__name__)


class EventBus:
    """Publish/subscribe event bus with priority ordering.

    One bus per game session, so tests and parallel sessions never share
    listeners.
    """

    def __init__(self, max_history: int = 100):
        self._listeners = defaultdict(list)  # event_name -> [(priority, callback)]
        self._lock = threading.Lock()
        self._event_history = []
        self._max_history = max_history

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0):
        """Register a listener for an event.

        Args:
            event_name: Event to listen for
            callback: Function to call. Receives **kwargs from emit().
            priority: Higher priority callbacks run first (default 0)
        """
        with self._lock:
            self._listeners[event_name].append((priority, callback))
            self._listeners[event_name].sort(key=lambda x: -x[0])
        logger.debug("Subscribed to '%s': %s (priority=%d)",
                     event_name, getattr(callback, "__name__", repr(callback)), priority)

    def unsubscribe(self, event_name: str, callback: Callable):
        """Remove a listener for an event."""
        with self._lock:
            self._listeners[event_name] = [
                (p, cb) for p, cb in self._listeners[event_name] if cb is not callback
            ]

    def emit(self, event_name: str, **kwargs):
        """Emit an event to all registered listeners.

        Args:
            event_name: Event name to emit
            **kwargs: Data passed to all listeners
        """
        with self._lock:
            listeners = list(self._listeners.get(event_name, []))

        self._event_history.append({
            "event": event_name,
            "time": time.time(),
            "data_keys": list(kwargs.keys()),
        })
        if len(self._event_history) > self._max_history:
            self._event_history = self._event_history[-self._max_history:]

        for priority, callback in listeners:
            try:
                callback(**kwargs)
            except Exception as e:
                logger.error("Event handler error [%s -> %s]: %s",
                             event_name, getattr(callback, "__name__", repr(callback)), e)

    def clear(self, event_name: str = None):
        """Remove all listeners, optionally for a specific event."""
        with self._lock:
            if event_name:
                self._listeners.pop(event_name, None)
            else:
                self._listeners.clear()

    @property
    def registered_events(self) -> list:
        """List all events with registered listeners."""
        with self._lock:
            return list(self._listeners.keys())

    @property
    def listener_count(self) -> int:
        """Total number of registered listeners."""
        with self._lock:
            return sum(len(cbs) for cbs in self._listeners.values())

    def get_history(self, last_n: int = 10) -> list:
        """Get recent event history."""
        return self._event_history[-last_n:]


# =============================================================================
# Standard Event Names (constants to avoid typos)
# =============================================================================

class Events:
    """Standard event names used throughout the game."""

    # Input
    HAND_DETECTED = "hand_detected"
    HAND_LOST = "hand_lost"
    GESTURE_CHANGED = "gesture_changed"

    # Casting
    CHARGE_STARTED = "charge_started"
    CHARGE_CANCELLED = "charge_cancelled"
    SPELL_CAST = "spell_cast"

    # Combat
    SPELL_HIT = "spell_hit"
    TARGET_DEFEATED = "target_defeated"
    TARGET_RESPAWNED = "target_respawned"
    COMBO_CHANGED = "combo_changed"

    # Resources
    MANA_CHANGED = "mana_changed"
    EXPERIENCE_GAINED = "experience_gained"
    LEVEL_UP = "level_up"

    # Lifecycle
    SESSION_STARTED = "session_started"
    SESSION_STOPPED = "session_stopped"
