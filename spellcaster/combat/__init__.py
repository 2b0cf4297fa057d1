"""Projectile flight, collisions and target lifecycle."""
from .projectile import Projectile, Particle
from .target import Target
from .simulator import CombatSimulator, CombatState

__all__ = ["Projectile", "Particle", "Target", "CombatSimulator", "CombatState"]
