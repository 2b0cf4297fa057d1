"""
Training-dummy target: health, defeat and respawn.
"""

import logging

logger = logging.getLogger(__name__)


class Target:
    """A stationary target with clamped health.

    Health reaching zero puts the target in the defeated sub-state until
    respawn() is called.
    """

    def __init__(self, x: float, y: float, max_health: float = 500.0):
        if max_health <= 0:
            raise ValueError(f"max_health must be positive, got {max_health}")
        self.x = x
        self.y = y
        self.max_health = float(max_health)
        self.health = float(max_health)
        self.defeated = False
        self.defeat_count = 0

    def __repr__(self):
        return f"Target(({self.x:.0f}, {self.y:.0f}), {self.health:.0f}/{self.max_health:.0f})"

    def apply_damage(self, amount: float) -> bool:
        """Subtract damage, flooring health at zero.

        Returns:
            True only on the hit that takes health to zero
        """
        self.health = max(0.0, self.health - max(0.0, amount))
        if self.health <= 0 and not self.defeated:
            self.defeated = True
            self.defeat_count += 1
            logger.info("Target defeated (#%d)", self.defeat_count)
            return True
        return False

    def respawn(self, x: float = None, y: float = None):
        """Restore full health, optionally moving to a new position."""
        if x is not None:
            self.x = x
        if y is not None:
            self.y = y
        self.health = self.max_health
        self.defeated = False

    @property
    def position(self) -> tuple:
        return (self.x, self.y)

    @property
    def health_fraction(self) -> float:
        return self.health / self.max_health

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "health": self.health,
            "max_health": self.max_health,
            "defeated": self.defeated,
        }
