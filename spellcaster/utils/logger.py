"""
Logging setup and the combat event log.
"""

import os
import logging
import logging.handlers
import time
from collections import Counter, deque
from functools import wraps

from spellcaster.core.events import EventBus, Events


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console (and optional rotating file) logging."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-32s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class CombatLogger:
    """Records casts, hits, defeats and level-ups from the event bus."""

    def __init__(self, event_bus: EventBus = None, max_history: int = 500):
        self.logger = logging.getLogger("combat_events")
        self._history = deque(maxlen=max_history)
        self._totals = Counter()
        if event_bus is not None:
            self.attach(event_bus)

    def attach(self, event_bus: EventBus):
        event_bus.subscribe(Events.SPELL_CAST, self.log_cast)
        event_bus.subscribe(Events.SPELL_HIT, self.log_hit)
        event_bus.subscribe(Events.TARGET_DEFEATED, self.log_defeat)
        event_bus.subscribe(Events.LEVEL_UP, self.log_level_up)

    def _record(self, kind, **data):
        entry = {"timestamp": time.time(), "event": kind}
        entry.update(data)
        self._history.append(entry)
        self._totals[kind] += 1
        return entry

    def log_cast(self, spell, origin=None, charge=None, **_):
        self._record("cast", spell=spell.id, charge=charge)
        self.logger.info(
            "Cast: %-10s | Charge: %s | From: %s",
            spell.id,
            f"{charge * 100:.0f}%" if charge is not None else "N/A",
            f"({origin[0]:.0f}, {origin[1]:.0f})" if origin else "N/A",
        )

    def log_hit(self, spell, damage, health, combo=0, **_):
        self._record("hit", spell=spell.id, damage=damage, health=health, combo=combo)
        self.logger.info(
            "Hit:  %-10s | Damage: %6.1f | Combo: x%-2d | Target HP: %.0f",
            spell.id, damage, combo, health,
        )

    def log_defeat(self, defeats=0, **_):
        self._record("defeat", defeats=defeats)
        self.logger.info("Target defeated (total: %d)", defeats)

    def log_level_up(self, level, **_):
        self._record("level_up", level=level)
        self.logger.info("Level up -> %d", level)

    def get_history(self, last_n=None):
        """Recent combat log entries."""
        history = list(self._history)
        if last_n:
            return history[-last_n:]
        return history

    def count(self, kind: str) -> int:
        """Total entries of a kind, including ones rotated out of history."""
        return self._totals[kind]

    @property
    def total_casts(self):
        return self.count("cast")


def log_timing(func):
    """Decorator to log function execution time."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
