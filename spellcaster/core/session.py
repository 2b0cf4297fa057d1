"""
Game session orchestrator: the gesture -> cast -> combat pipeline.

Architecture:
    HandObservation -> GestureClassifier -> CastStateMachine
    -> CombatSimulator -> ResourceLedger

Two entry points, called at independent cadences:
    on_hand(observation)  - once per pose-detection cycle
    tick(delta_ms)        - once per display frame; advances the virtual
                            clock (firing due timers) then steps combat

stop() cancels every timer and drops in-flight projectiles; nothing is
mutated or emitted again until start().
"""

import logging
from typing import List, Optional

import numpy as np

from spellcaster.casting.cast_machine import CastStateMachine
from spellcaster.casting.spells import SpellBook
from spellcaster.combat.simulator import CombatSimulator
from spellcaster.core.events import EventBus, Events
from spellcaster.core.scheduler import Scheduler
from spellcaster.core.types import GestureType, HandObservation
from spellcaster.recognition.gesture_classifier import GestureClassifier
from spellcaster.resources.ledger import ResourceLedger
from spellcaster.utils.config import Config

logger = logging.getLogger(__name__)


class GameSession:
    """Owns every core component and the shared virtual clock."""

    def __init__(self, config: Config = None, event_bus: EventBus = None,
                 spell_book: SpellBook = None, rng: np.random.Generator = None):
        self._config = config or Config()
        self._bus = event_bus or EventBus()
        self._spells = spell_book or SpellBook.from_entries(self._config.spells)
        self._rng = rng
        self._scheduler = Scheduler()
        self._classifier = GestureClassifier()

        arena = self._config.arena
        self._arena_size = (int(arena.get("width", 1280)), int(arena.get("height", 720)))
        self._regen_interval_ms = float(
            self._config.resources.get("mana_regen_interval_ms", 1000))

        self._running = False
        self._regen_timer = None
        self._build()

    def _build(self):
        """Create fresh ledger, cast machine and combat state."""
        self._ledger = ResourceLedger(self._config.resources, self._bus)
        self._caster = CastStateMachine(self._spells, self._ledger, self._bus)
        self._combat = CombatSimulator(
            self._config.combat, self._scheduler, self._ledger,
            arena_size=self._arena_size, event_bus=self._bus, rng=self._rng,
        )
        self._current_gesture = GestureType.NONE
        self._hand: Optional[HandObservation] = None
        self._frame_count = 0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self):
        """Arm the mana regeneration timer and accept input."""
        if self._running:
            return
        self._running = True
        self._regen_timer = self._scheduler.call_every(
            self._regen_interval_ms, self._ledger.regenerate, name="mana_regen")
        self._combat.resume()
        logger.info("Session started (mana=%d, level=%d)", self._ledger.mana, self._ledger.level)
        self._bus.emit(Events.SESSION_STARTED)

    def stop(self):
        """Cancel timers, discard projectiles and the charge session."""
        if not self._running:
            return
        self._bus.emit(Events.SESSION_STOPPED, hits=self._combat.hit_count)
        self._running = False
        self._scheduler.cancel_all()
        self._regen_timer = None
        self._combat.clear()
        self._caster.reset()
        self._current_gesture = GestureType.NONE
        self._hand = None
        logger.info("Session stopped")

    def reset(self):
        """Stop, start over with fresh resources and combat state, restart."""
        was_running = self._running
        self.stop()
        self._build()
        self._classifier.reset()
        if was_running:
            self.start()

    # =========================================================================
    # Inputs
    # =========================================================================

    def on_hand(self, observation: Optional[HandObservation]) -> GestureType:
        """Process one pose-detection cycle.

        Args:
            observation: detected hand, or None when no hand is in view

        Returns:
            the classified gesture
        """
        if not self._running:
            return GestureType.NONE

        had_hand = self._hand is not None
        self._hand = observation
        if observation is None:
            gesture = GestureType.NONE
            if had_hand:
                self._bus.emit(Events.HAND_LOST)
        else:
            gesture = self._classifier.classify(observation.landmarks)
            if not had_hand:
                self._bus.emit(Events.HAND_DETECTED, confidence=observation.confidence)

        # handlers run synchronously and may stop the session mid-cycle
        if not self._running:
            return gesture

        previous = self._current_gesture
        if gesture != previous:
            self._current_gesture = gesture
            self._bus.emit(Events.GESTURE_CHANGED, gesture=gesture, previous=previous)
            if not self._running:
                return gesture

        origin = observation.index_tip if observation is not None else None
        cast = self._caster.update(gesture, self._scheduler.now, origin=origin)
        if cast is not None and self._running:
            self._combat.spawn(cast)
        return gesture

    def tick(self, delta_ms: float) -> List[dict]:
        """Advance one display frame.

        Returns:
            hit records produced this frame
        """
        if not self._running:
            return []
        self._scheduler.advance(delta_ms)
        # an event handler fired by a timer may have stopped the session
        if not self._running:
            return []
        hits = self._combat.step()
        if self._running:
            self._frame_count += 1
        return hits

    def set_arena_size(self, width: int, height: int):
        """Match the arena to the render surface (e.g. camera resolution)."""
        self._arena_size = (int(width), int(height))
        self._combat.set_arena_size(width, height)

    # =========================================================================
    # Read access
    # =========================================================================

    def build_state(self) -> dict:
        """Snapshot of everything the render sink and HUD need."""
        now = self._scheduler.now
        spell = self._caster.current_spell
        target = self._combat.target

        projectiles = []
        for p in self._combat.projectiles:
            projectiles.append({
                "id": p.id,
                "spell": p.spell.id,
                "x": p.x,
                "y": p.y,
                "color": p.spell.color,
                "particles": [(q.x, q.y, q.size, q.life, q.color) for q in p.particles],
            })

        return {
            "running": self._running,
            "time_ms": now,
            "frame_count": self._frame_count,
            "arena_size": self._arena_size,
            "gesture_name": self._current_gesture.value,
            "hand_detected": self._hand is not None,
            "hand_landmarks": None if self._hand is None else np.array(self._hand.landmarks),
            "charging": spell is not None,
            "charge_spell": None if spell is None else {
                "id": spell.id, "name": spell.name, "color": spell.color, "icon": spell.icon,
            },
            "charge_progress": self._caster.charge_progress(now),
            "projectiles": projectiles,
            "target": target.to_dict(),
            "combo": self._combat.combo_count,
            "hits": self._combat.hit_count,
            **self._ledger.to_dict(),
        }

    @property
    def running(self) -> bool:
        return self._running

    @property
    def arena_size(self) -> tuple:
        return self._arena_size

    @property
    def now(self) -> float:
        return self._scheduler.now

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def ledger(self) -> ResourceLedger:
        return self._ledger

    @property
    def caster(self) -> CastStateMachine:
        return self._caster

    @property
    def combat(self) -> CombatSimulator:
        return self._combat

    @property
    def spell_book(self) -> SpellBook:
        return self._spells

    @property
    def classifier(self) -> GestureClassifier:
        return self._classifier

    @property
    def current_gesture(self) -> GestureType:
        return self._current_gesture
