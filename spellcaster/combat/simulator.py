"""
Per-frame combat simulation: projectiles, particles, damage, combo.

Frame order (step()):
    1. move every projectile toward its fixed target point
    2. resolve hits (distance < hit radius) into damage and rewards
    3. emit, advance and prune particles of the surviving projectiles

Combo decay and target respawn are timers on the shared Scheduler and
fire between frames.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from spellcaster.combat.projectile import Projectile
from spellcaster.combat.target import Target
from spellcaster.core.events import EventBus, Events
from spellcaster.core.scheduler import Scheduler, TimerHandle
from spellcaster.core.types import CastEvent
from spellcaster.resources.ledger import ResourceLedger

logger = logging.getLogger(__name__)


@dataclass
class CombatState:
    """All mutable combat state, owned by one CombatSimulator."""
    target: Target
    projectiles: List[Projectile] = field(default_factory=list)
    combo_count: int = 0
    hit_count: int = 0
    next_projectile_id: int = 1
    respawn_timer: Optional[TimerHandle] = None


class CombatSimulator:
    """Advances projectiles and resolves their hits on the target."""

    def __init__(self, config: dict, scheduler: Scheduler, ledger: ResourceLedger,
                 arena_size: tuple = (1280, 720), event_bus: EventBus = None,
                 rng: np.random.Generator = None):
        config = config or {}
        self._speed = float(config.get("projectile_speed", 15.0))
        self._hit_radius = float(config.get("hit_radius", 30.0))
        self._particles_per_frame = int(config.get("particles_per_frame", 3))
        self._particle_decay = float(config.get("particle_decay", 0.02))
        self._particle_jitter = float(config.get("particle_jitter", 1.0))
        self._particle_size = (float(config.get("particle_size_min", 2.0)),
                               float(config.get("particle_size_max", 6.0)))
        self._combo_window_ms = float(config.get("combo_window_ms", 5000))
        self._combo_bonus = float(config.get("combo_damage_bonus", 0.1))
        self._respawn_delay_ms = float(config.get("respawn_delay_ms", 1500))
        self._target_ratio = (float(config.get("target_x_ratio", 0.75)),
                              float(config.get("target_y_ratio", 0.5)))
        self._target_health = float(config.get("target_health", 500.0))

        self._hit_exp = int(config.get("hit_experience", 5))
        self._defeat_exp = int(config.get("defeat_experience", 50))

        self._scheduler = scheduler
        self._ledger = ledger
        self._bus = event_bus
        self._rng = rng if rng is not None else np.random.default_rng()
        self._arena_w, self._arena_h = arena_size

        # bumped by clear(); work in progress checks it after every emit
        self._epoch = 0

        x, y = self.spawn_point
        self._state = CombatState(target=Target(x, y, self._target_health))

    def _emit(self, event_name: str, **kwargs):
        if self._bus is not None:
            self._bus.emit(event_name, **kwargs)

    @property
    def spawn_point(self) -> tuple:
        """Canonical target position in the arena."""
        return (self._arena_w * self._target_ratio[0], self._arena_h * self._target_ratio[1])

    # =========================================================================
    # Casting
    # =========================================================================

    def spawn(self, cast: CastEvent) -> Projectile:
        """Launch a projectile for a cast and bump the combo."""
        state = self._state
        projectile = Projectile(
            projectile_id=state.next_projectile_id,
            spell=cast.spell,
            x=cast.origin[0],
            y=cast.origin[1],
            target_x=state.target.x,
            target_y=state.target.y,
            speed=self._speed,
        )
        state.next_projectile_id += 1
        state.projectiles.append(projectile)

        state.combo_count += 1
        self._scheduler.call_later(self._combo_window_ms, self._decay_combo, name="combo_decay")
        self._emit(Events.COMBO_CHANGED, combo=state.combo_count)

        logger.debug("Spawned %r (combo x%d)", projectile, state.combo_count)
        return projectile

    def _decay_combo(self):
        state = self._state
        state.combo_count = max(0, state.combo_count - 1)
        self._emit(Events.COMBO_CHANGED, combo=state.combo_count)

    @property
    def combo_multiplier(self) -> float:
        return 1.0 + self._combo_bonus * self._state.combo_count

    # =========================================================================
    # Frame update
    # =========================================================================

    def step(self) -> List[dict]:
        """Advance the simulation by one frame.

        Returns:
            list of hit records: {"projectile_id", "spell", "damage", "health", "defeated"}
        """
        state = self._state
        if not state.projectiles:
            return []

        epoch = self._epoch

        # 1. Movement
        distances = [p.advance() for p in state.projectiles]

        # 2. Collision
        hits = []
        survivors = []
        for projectile, dist in zip(state.projectiles, distances):
            if dist < self._hit_radius:
                hits.append(self._resolve_hit(projectile))
                if self._epoch != epoch:
                    logger.debug("Combat cleared mid-frame, abandoning step")
                    return hits
            else:
                survivors.append(projectile)
        state.projectiles = survivors

        # 3. Particles
        lo, hi = self._particle_size
        for projectile in survivors:
            projectile.emit_particles(self._particles_per_frame, self._rng,
                                      jitter=self._particle_jitter, size_min=lo, size_max=hi)
            projectile.update_particles(self._particle_decay)

        return hits

    def _resolve_hit(self, projectile: Projectile) -> dict:
        state = self._state
        epoch = self._epoch
        target = state.target
        damage = projectile.spell.damage * self.combo_multiplier
        defeated_now = target.apply_damage(damage)
        state.hit_count += 1

        logger.debug("Hit: %s for %.1f (x%d combo), health %.1f",
                     projectile.spell.id, damage, state.combo_count, target.health)
        self._emit(Events.SPELL_HIT, spell=projectile.spell, damage=damage,
                   health=target.health, combo=state.combo_count, hits=state.hit_count)
        if self._epoch == epoch:
            self._ledger.add_experience(self._hit_exp)
        if defeated_now and self._epoch == epoch:
            self._emit(Events.TARGET_DEFEATED, defeats=target.defeat_count)
        if defeated_now and self._epoch == epoch:
            state.respawn_timer = self._scheduler.call_later(
                self._respawn_delay_ms, self._respawn_target, name="respawn")

        return {
            "projectile_id": projectile.id,
            "spell": projectile.spell.id,
            "damage": damage,
            "health": target.health,
            "defeated": defeated_now,
        }

    def _respawn_target(self):
        state = self._state
        epoch = self._epoch
        state.respawn_timer = None
        x, y = self.spawn_point
        state.target.respawn(x, y)
        logger.info("Target respawned at full health (%.0f)", state.target.max_health)
        self._emit(Events.TARGET_RESPAWNED, health=state.target.health)
        if self._epoch == epoch:
            self._ledger.add_experience(self._defeat_exp)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def clear(self):
        """Discard every projectile and particle without side effects.

        A step() or hit in progress (e.g. an event handler stopped the
        session) stops at its next check and mutates nothing further.
        """
        self._epoch += 1
        dropped = len(self._state.projectiles)
        self._state.projectiles = []
        self._state.respawn_timer = None
        if dropped:
            logger.debug("Discarded %d in-flight projectiles", dropped)

    def resume(self):
        """Re-arm state whose timers were cancelled while stopped.

        A defeated target gets a new respawn timer; the combo drops to zero
        since its decay timers are gone.
        """
        state = self._state
        if state.target.defeated and state.respawn_timer is None:
            state.respawn_timer = self._scheduler.call_later(
                self._respawn_delay_ms, self._respawn_target, name="respawn")
        if state.combo_count:
            state.combo_count = 0
            self._emit(Events.COMBO_CHANGED, combo=0)

    def reset(self):
        """Fresh combat state (target at full health, counters zeroed).

        Pending timers are not touched; cancel them on the scheduler first.
        """
        x, y = self.spawn_point
        self._state = CombatState(target=Target(x, y, self._target_health))

    def set_arena_size(self, width: int, height: int):
        """Resize the arena and move a live target to the new spawn point.

        A defeated target stays put and reappears there on respawn.
        Projectiles in flight keep their original aim point.
        """
        self._arena_w, self._arena_h = width, height
        target = self._state.target
        if not target.defeated:
            target.x, target.y = self.spawn_point

    @property
    def state(self) -> CombatState:
        return self._state

    @property
    def target(self) -> Target:
        return self._state.target

    @property
    def projectiles(self) -> List[Projectile]:
        return self._state.projectiles

    @property
    def combo_count(self) -> int:
        return self._state.combo_count

    @property
    def hit_count(self) -> int:
        return self._state.hit_count

    @property
    def hit_radius(self) -> float:
        return self._hit_radius
