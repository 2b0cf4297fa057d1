"""
Charge/release spell-casting state machine.

Lifecycle (driven by the pose-detection cycle):
    IDLE     --fist, then spell gesture, mana ok-->  CHARGING(spell, t0)
    CHARGING --palm-->                               cast event, IDLE
    CHARGING --any other gesture-->                  CHARGING (no implicit cancel)

The machine may be fed the same gesture many times between detector
updates; only the fist -> spell-gesture edge starts a charge. A "none"
reading (no hand in view) neither transitions nor replaces the previous
gesture.
"""

import logging
from enum import Enum
from typing import Optional, Tuple

from spellcaster.casting.spells import SpellBook
from spellcaster.core.events import EventBus, Events
from spellcaster.core.types import CastEvent, GestureType, Spell
from spellcaster.resources.ledger import ResourceLedger

logger = logging.getLogger(__name__)


class CastState(Enum):
    IDLE = "idle"
    CHARGING = "charging"


class CastSession:
    """The spell being charged and when charging began."""

    __slots__ = ("spell", "start_ms")

    def __init__(self, spell: Spell, start_ms: float):
        self.spell = spell
        self.start_ms = start_ms

    def __repr__(self):
        return f"CastSession({self.spell.id}, start={self.start_ms:.0f}ms)"

    def progress(self, now_ms: float) -> float:
        """Charge fraction in [0, 1]. Display only; never gates the release."""
        elapsed = max(0.0, now_ms - self.start_ms)
        return min(elapsed / self.spell.charge_time_ms, 1.0)


class CastStateMachine:
    """Turns a stream of gesture labels into spell cast events."""

    def __init__(self, spell_book: SpellBook, ledger: ResourceLedger,
                 event_bus: EventBus = None):
        self._spells = spell_book
        self._ledger = ledger
        self._bus = event_bus

        self._session: Optional[CastSession] = None
        self._prev_gesture = GestureType.NONE
        self._casts = 0
        self._resets = 0

    def _emit(self, event_name: str, **kwargs):
        if self._bus is not None:
            self._bus.emit(event_name, **kwargs)

    def update(self, gesture: GestureType, now_ms: float,
               origin: Optional[Tuple[float, float]] = None) -> Optional[CastEvent]:
        """Feed one detection cycle's gesture.

        Args:
            gesture: current classified gesture
            now_ms: current time in milliseconds
            origin: screen position the projectile launches from (index tip)

        Returns:
            CastEvent when a charged spell is released, else None
        """
        if gesture == GestureType.NONE:
            return None

        prev = self._prev_gesture
        self._prev_gesture = gesture

        if self._session is None:
            if prev == GestureType.FIST and gesture.is_spell_trigger:
                self._try_start_charge(gesture, now_ms)
            return None

        if gesture == GestureType.PALM:
            return self._release(now_ms, origin)

        return None

    def _try_start_charge(self, gesture: GestureType, now_ms: float):
        spell = self._spells.for_gesture(gesture)
        if spell is None:
            logger.debug("No spell bound to gesture '%s'", gesture.value)
            return
        if not self._ledger.can_afford(spell.mana_cost):
            logger.debug("Cannot charge %s: mana %d < cost %d",
                         spell.id, self._ledger.mana, spell.mana_cost)
            return

        self._session = CastSession(spell, now_ms)
        logger.debug("Charging %s", spell.id)
        self._emit(Events.CHARGE_STARTED, spell=spell, start_ms=now_ms)

    def _release(self, now_ms: float, origin) -> Optional[CastEvent]:
        if origin is None:
            logger.debug("Palm without a launch point, holding charge")
            return None

        session = self._session
        self._session = None

        spell = session.spell
        resets = self._resets
        if not self._ledger.try_spend(spell.mana_cost):
            logger.debug("Cast of %s dropped at release: insufficient mana", spell.id)
            self._emit(Events.CHARGE_CANCELLED, spell=spell, reason="insufficient_mana")
            return None
        if self._resets != resets:
            logger.debug("Machine reset while spending mana for %s, cast dropped", spell.id)
            return None

        self._casts += 1
        event = CastEvent(spell=spell, origin=(float(origin[0]), float(origin[1])),
                          timestamp_ms=now_ms)
        logger.info("Cast %s (charge %.0f%%, mana left %d)",
                    spell.id, session.progress(now_ms) * 100, self._ledger.mana)
        self._emit(Events.SPELL_CAST, spell=spell, origin=event.origin,
                   charge=session.progress(now_ms))
        return event

    def cancel(self):
        """Drop the charge session without spending mana."""
        if self._session is not None:
            spell = self._session.spell
            self._session = None
            logger.debug("Charge of %s cancelled", spell.id)
            self._emit(Events.CHARGE_CANCELLED, spell=spell, reason="cancelled")

    def reset(self):
        """Forget the session and gesture history (session restart)."""
        self._resets += 1
        self._session = None
        self._prev_gesture = GestureType.NONE

    def charge_progress(self, now_ms: float) -> float:
        """Charge fraction of the active session, 0 when idle."""
        if self._session is None:
            return 0.0
        return self._session.progress(now_ms)

    @property
    def state(self) -> CastState:
        return CastState.IDLE if self._session is None else CastState.CHARGING

    @property
    def session(self) -> Optional[CastSession]:
        return self._session

    @property
    def current_spell(self) -> Optional[Spell]:
        return self._session.spell if self._session else None

    @property
    def previous_gesture(self) -> GestureType:
        return self._prev_gesture

    @property
    def cast_count(self) -> int:
        return self._casts
