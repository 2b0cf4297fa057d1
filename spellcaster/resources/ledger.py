"""
Mana, experience and level counters.

Mana is spent by the cast state machine and regenerated on a timer;
experience is granted by the combat simulator and wraps into levels.
"""

import logging

from spellcaster.core.events import EventBus, Events

logger = logging.getLogger(__name__)


class ResourceLedger:
    """Bounded mana pool plus experience/level progression."""

    def __init__(self, config: dict = None, event_bus: EventBus = None):
        config = config or {}
        self._max_mana = int(config.get("max_mana", 100))
        self._regen_amount = int(config.get("mana_regen_amount", 2))
        self._exp_per_level = int(config.get("experience_per_level", 100))
        self._bus = event_bus

        self._mana = self._clamp(int(config.get("initial_mana", self._max_mana)))
        self._experience = int(config.get("initial_experience", 0))
        self._level = int(config.get("initial_level", 1))

    def _clamp(self, mana: int) -> int:
        return max(0, min(self._max_mana, mana))

    def _emit(self, event_name: str, **kwargs):
        if self._bus is not None:
            self._bus.emit(event_name, **kwargs)

    # =========================================================================
    # Mana
    # =========================================================================

    def can_afford(self, cost: int) -> bool:
        return self._mana >= cost

    def try_spend(self, cost: int) -> bool:
        """Deduct cost if affordable. No mutation on failure."""
        if cost < 0:
            raise ValueError(f"cost must be non-negative, got {cost}")
        if self._mana < cost:
            logger.debug("Insufficient mana: have %d, need %d", self._mana, cost)
            return False
        self._mana -= cost
        self._emit(Events.MANA_CHANGED, mana=self._mana, delta=-cost)
        return True

    def regenerate(self):
        """Timer callback: +regen_amount mana, capped at max."""
        new_mana = self._clamp(self._mana + self._regen_amount)
        if new_mana != self._mana:
            delta = new_mana - self._mana
            self._mana = new_mana
            self._emit(Events.MANA_CHANGED, mana=self._mana, delta=delta)

    # =========================================================================
    # Experience
    # =========================================================================

    def add_experience(self, amount: int) -> bool:
        """Grant experience; wraps once into a level-up.

        Only one level-up is evaluated per call, so any remainder beyond a
        second threshold is carried as experience.

        Returns:
            True if the grant caused a level-up
        """
        new_exp = self._experience + amount
        leveled = False
        if new_exp >= self._exp_per_level:
            self._level += 1
            new_exp -= self._exp_per_level
            leveled = True
        self._experience = new_exp

        self._emit(Events.EXPERIENCE_GAINED, amount=amount,
                   experience=self._experience, level=self._level)
        if leveled:
            logger.info("Level up! Now level %d", self._level)
            self._emit(Events.LEVEL_UP, level=self._level)
        return leveled

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def mana(self) -> int:
        return self._mana

    @property
    def max_mana(self) -> int:
        return self._max_mana

    @property
    def experience(self) -> int:
        return self._experience

    @property
    def experience_per_level(self) -> int:
        return self._exp_per_level

    @property
    def level(self) -> int:
        return self._level

    def to_dict(self) -> dict:
        return {
            "mana": self._mana,
            "max_mana": self._max_mana,
            "experience": self._experience,
            "experience_per_level": self._exp_per_level,
            "level": self._level,
        }
