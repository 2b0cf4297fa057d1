"""
Spell catalog: static spell definitions, loaded once at startup.
"""

import logging
from typing import Dict, Iterator, List, Optional

from spellcaster.core.types import GestureType, Spell, SPELL_GESTURES
from spellcaster.utils.config import ConfigError

logger = logging.getLogger(__name__)


DEFAULT_SPELLS = [
    {
        "id": "fireball",
        "name": "Fireball",
        "element": "fire",
        "damage": 30,
        "mana_cost": 15,
        "gesture": "point",
        "charge_time_ms": 1000,
        "color": "#ff6b35",
        "particle_color": "#ffa500",
        "icon": "F",
    },
    {
        "id": "waterwave",
        "name": "Water Wave",
        "element": "water",
        "damage": 20,
        "mana_cost": 10,
        "gesture": "peace",
        "charge_time_ms": 800,
        "color": "#4fc3f7",
        "particle_color": "#29b6f6",
        "icon": "W",
    },
    {
        "id": "lightning",
        "name": "Lightning",
        "element": "lightning",
        "damage": 40,
        "mana_cost": 20,
        "gesture": "rock",
        "charge_time_ms": 1500,
        "color": "#ffd54f",
        "particle_color": "#ffeb3b",
        "icon": "L",
    },
]

_REQUIRED_FIELDS = ("id", "damage", "mana_cost", "gesture", "charge_time_ms")


def spell_from_dict(entry: dict) -> Spell:
    """Build and validate a Spell from a catalog entry.

    Raises:
        ConfigError: on missing fields or out-of-range values
    """
    missing = [f for f in _REQUIRED_FIELDS if f not in entry]
    if missing:
        raise ConfigError(f"Spell entry {entry.get('id', '?')!r} missing fields: {missing}")

    spell_id = str(entry["id"])
    try:
        gesture = GestureType(entry["gesture"])
    except ValueError:
        raise ConfigError(f"Spell {spell_id!r}: unknown gesture {entry['gesture']!r}") from None
    if gesture not in SPELL_GESTURES:
        raise ConfigError(
            f"Spell {spell_id!r}: gesture must be one of "
            f"{sorted(g.value for g in SPELL_GESTURES)}, got {gesture.value!r}"
        )

    damage = float(entry["damage"])
    if damage <= 0:
        raise ConfigError(f"Spell {spell_id!r}: damage must be positive, got {damage}")

    mana_cost = entry["mana_cost"]
    if isinstance(mana_cost, bool) or not isinstance(mana_cost, int) or mana_cost < 0:
        raise ConfigError(f"Spell {spell_id!r}: mana_cost must be a non-negative integer, got {mana_cost!r}")

    charge_time = float(entry["charge_time_ms"])
    if charge_time <= 0:
        raise ConfigError(f"Spell {spell_id!r}: charge_time_ms must be positive, got {charge_time}")

    return Spell(
        id=spell_id,
        name=str(entry.get("name", spell_id)),
        element=str(entry.get("element", "arcane")),
        damage=damage,
        mana_cost=mana_cost,
        gesture=gesture,
        charge_time_ms=charge_time,
        color=str(entry.get("color", "#ffffff")),
        particle_color=str(entry.get("particle_color", entry.get("color", "#ffffff"))),
        icon=str(entry.get("icon", "")),
    )


class SpellBook:
    """Immutable lookup of spells by id and by trigger gesture."""

    def __init__(self, spells: List[Spell]):
        self._by_id: Dict[str, Spell] = {}
        self._by_gesture: Dict[GestureType, Spell] = {}
        for spell in spells:
            if spell.id in self._by_id:
                raise ConfigError(f"Duplicate spell id {spell.id!r}")
            if spell.gesture in self._by_gesture:
                raise ConfigError(
                    f"Gesture {spell.gesture.value!r} bound to both "
                    f"{self._by_gesture[spell.gesture].id!r} and {spell.id!r}"
                )
            self._by_id[spell.id] = spell
            self._by_gesture[spell.gesture] = spell

    @classmethod
    def from_entries(cls, entries: Optional[list] = None) -> "SpellBook":
        """Build from catalog dicts; the built-in catalog when entries is empty."""
        entries = entries or DEFAULT_SPELLS
        book = cls([spell_from_dict(e) for e in entries])
        logger.info("Spell book: %s", ", ".join(
            f"{s.id}({s.gesture.value}, {s.mana_cost} mana)" for s in book))
        return book

    def for_gesture(self, gesture: GestureType) -> Optional[Spell]:
        """Spell triggered by a gesture, or None."""
        return self._by_gesture.get(gesture)

    def get(self, spell_id: str) -> Optional[Spell]:
        return self._by_id.get(spell_id)

    def __iter__(self) -> Iterator[Spell]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, spell_id: str) -> bool:
        return spell_id in self._by_id
