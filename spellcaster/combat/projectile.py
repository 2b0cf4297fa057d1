"""
Spell projectiles and their particle trails.
"""

import math
from typing import List

import numpy as np

from spellcaster.core.types import Spell


class Particle:
    """A single trail particle. Owned by exactly one projectile."""

    __slots__ = ("x", "y", "vx", "vy", "life", "color", "size")

    def __init__(self, x: float, y: float, vx: float, vy: float,
                 color: str, size: float, life: float = 1.0):
        self.x = x
        self.y = y
        self.vx = vx
        self.vy = vy
        self.life = life
        self.color = color
        self.size = size

    def __repr__(self):
        return f"Particle(({self.x:.1f}, {self.y:.1f}), life={self.life:.2f})"

    def update(self, decay: float):
        self.x += self.vx
        self.y += self.vy
        self.life -= decay

    @property
    def alive(self) -> bool:
        return self.life > 0


class Projectile:
    """A spell in flight toward a target point fixed at spawn time."""

    __slots__ = ("id", "spell", "x", "y", "target_x", "target_y", "speed", "particles")

    def __init__(self, projectile_id: int, spell: Spell, x: float, y: float,
                 target_x: float, target_y: float, speed: float):
        if speed <= 0:
            raise ValueError(f"projectile speed must be positive, got {speed}")
        self.id = projectile_id
        self.spell = spell
        self.x = x
        self.y = y
        self.target_x = target_x
        self.target_y = target_y
        self.speed = speed
        self.particles: List[Particle] = []

    def __repr__(self):
        return (f"Projectile(#{self.id} {self.spell.id} at ({self.x:.1f}, {self.y:.1f}), "
                f"dist={self.distance_to_target():.1f})")

    def distance_to_target(self) -> float:
        return math.hypot(self.target_x - self.x, self.target_y - self.y)

    def advance(self) -> float:
        """Move one frame toward the target.

        The step is capped at the remaining distance so the projectile
        never passes its target point.

        Returns:
            distance to target after the move
        """
        dx = self.target_x - self.x
        dy = self.target_y - self.y
        dist = math.hypot(dx, dy)
        if dist == 0:
            return 0.0
        step = min(self.speed, dist)
        self.x += dx / dist * step
        self.y += dy / dist * step
        return dist - step

    def emit_particles(self, count: int, rng: np.random.Generator, jitter: float = 1.0,
                       size_min: float = 2.0, size_max: float = 6.0):
        """Spawn trail particles at the current position with random drift."""
        for _ in range(count):
            vx, vy = rng.uniform(-jitter, jitter, size=2)
            self.particles.append(Particle(
                x=self.x,
                y=self.y,
                vx=float(vx),
                vy=float(vy),
                color=self.spell.particle_color,
                size=float(rng.uniform(size_min, size_max)),
            ))

    def update_particles(self, decay: float):
        """Advance every particle one frame and drop the dead ones."""
        for p in self.particles:
            p.update(decay)
        self.particles = [p for p in self.particles if p.alive]
