"""
Tests for the Cast State Machine
=================================
"""

import pytest

from spellcaster.casting.cast_machine import CastStateMachine, CastState
from spellcaster.casting.spells import SpellBook, spell_from_dict
from spellcaster.core.events import Events
from spellcaster.core.types import GestureType
from spellcaster.resources.ledger import ResourceLedger
from spellcaster.utils.config import ConfigError

from conftest import EventRecorder

ORIGIN = (320.0, 240.0)


def feed(machine, gestures, start_ms=0.0, step_ms=100.0, origin=ORIGIN):
    """Feed a gesture sequence, returning every cast event produced."""
    casts = []
    now = start_ms
    for g in gestures:
        cast = machine.update(g, now, origin=origin)
        if cast is not None:
            casts.append(cast)
        now += step_ms
    return casts


class TestCastStateMachine:
    """Test suite for charge/release transitions."""

    @pytest.fixture
    def machine(self, spell_book, ledger, bus):
        return CastStateMachine(spell_book, ledger, bus)

    def test_fist_then_point_charges_fireball(self, machine):
        """fist -> point starts charging the fireball."""
        feed(machine, [GestureType.FIST, GestureType.POINT])
        assert machine.state == CastState.CHARGING
        assert machine.current_spell.id == "fireball"

    def test_each_spell_gesture(self, spell_book, ledger):
        """Every trigger gesture charges its bound spell."""
        for gesture, spell_id in [(GestureType.POINT, "fireball"),
                                  (GestureType.PEACE, "waterwave"),
                                  (GestureType.ROCK, "lightning")]:
            machine = CastStateMachine(spell_book, ledger)
            feed(machine, [GestureType.FIST, gesture])
            assert machine.current_spell.id == spell_id

    def test_spell_gesture_without_fist(self, machine):
        """A spell gesture not preceded by a fist does nothing."""
        feed(machine, [GestureType.UNKNOWN, GestureType.POINT, GestureType.POINT])
        assert machine.state == CastState.IDLE

    def test_palm_releases_exactly_one_cast(self, machine, ledger, bus):
        """fist, point, palm, palm yields one cast and spends mana once."""
        recorder = EventRecorder(bus, [Events.SPELL_CAST])
        casts = feed(machine, [GestureType.FIST, GestureType.POINT,
                               GestureType.PALM, GestureType.PALM])
        assert len(casts) == 1
        assert casts[0].spell.id == "fireball"
        assert casts[0].origin == ORIGIN
        assert ledger.mana == 100 - 15
        assert recorder.count(Events.SPELL_CAST) == 1
        assert machine.state == CastState.IDLE
        assert machine.cast_count == 1

    def test_repeated_gesture_frames(self, machine):
        """Repeated readings of the same gesture between updates are harmless."""
        casts = feed(machine, [GestureType.FIST] * 3 + [GestureType.PEACE] * 4
                     + [GestureType.PALM] * 3)
        assert len(casts) == 1
        assert casts[0].spell.id == "waterwave"

    def test_none_does_not_break_sequence(self, machine):
        """Losing the hand between fist and point keeps the fist as previous."""
        feed(machine, [GestureType.FIST, GestureType.NONE, GestureType.NONE,
                       GestureType.POINT])
        assert machine.state == CastState.CHARGING
        assert machine.previous_gesture == GestureType.POINT

    def test_charging_survives_other_gestures(self, machine):
        """No implicit cancel while charging."""
        feed(machine, [GestureType.FIST, GestureType.ROCK, GestureType.NONE,
                       GestureType.FIST, GestureType.UNKNOWN, GestureType.POINT])
        assert machine.state == CastState.CHARGING
        assert machine.current_spell.id == "lightning"

    def test_new_charge_only_from_idle(self, machine):
        """fist -> point while charging does not swap the spell."""
        feed(machine, [GestureType.FIST, GestureType.PEACE,
                       GestureType.FIST, GestureType.POINT])
        assert machine.current_spell.id == "waterwave"

    def test_insufficient_mana_stays_idle(self, spell_book, bus):
        """Charge start is rejected without mutation when mana is short."""
        ledger = ResourceLedger({"initial_mana": 10}, bus)
        machine = CastStateMachine(spell_book, ledger, bus)
        recorder = EventRecorder(bus, [Events.CHARGE_STARTED, Events.MANA_CHANGED])
        feed(machine, [GestureType.FIST, GestureType.POINT])
        assert machine.state == CastState.IDLE
        assert ledger.mana == 10
        assert recorder.events == []

    def test_cheaper_spell_still_affordable(self, spell_book, bus):
        """With 10 mana the 10-cost water wave can still be charged."""
        ledger = ResourceLedger({"initial_mana": 10}, bus)
        machine = CastStateMachine(spell_book, ledger, bus)
        casts = feed(machine, [GestureType.FIST, GestureType.PEACE, GestureType.PALM])
        assert len(casts) == 1
        assert ledger.mana == 0

    def test_mana_spent_elsewhere_before_release(self, spell_book, bus):
        """Mana drained during the charge drops the cast at release."""
        ledger = ResourceLedger({"initial_mana": 15}, bus)
        machine = CastStateMachine(spell_book, ledger, bus)
        recorder = EventRecorder(bus, [Events.CHARGE_CANCELLED, Events.SPELL_CAST])
        feed(machine, [GestureType.FIST, GestureType.POINT])
        assert ledger.try_spend(10)
        casts = feed(machine, [GestureType.PALM])
        assert casts == []
        assert machine.state == CastState.IDLE
        assert ledger.mana == 5
        assert recorder.names() == [Events.CHARGE_CANCELLED]

    def test_early_release_full_damage(self, machine):
        """Release before full charge is honored with the catalog damage."""
        machine.update(GestureType.FIST, 0.0, origin=ORIGIN)
        machine.update(GestureType.ROCK, 0.0, origin=ORIGIN)
        assert machine.charge_progress(100.0) < 1.0
        cast = machine.update(GestureType.PALM, 100.0, origin=ORIGIN)
        assert cast is not None
        assert cast.spell.damage == 40

    def test_palm_without_origin_holds_charge(self, machine):
        """A palm with no launch point keeps charging."""
        feed(machine, [GestureType.FIST, GestureType.POINT])
        assert machine.update(GestureType.PALM, 500.0, origin=None) is None
        assert machine.state == CastState.CHARGING

    def test_charge_progress(self, machine):
        """Progress is min(elapsed / charge_time, 1)."""
        machine.update(GestureType.FIST, 0.0)
        machine.update(GestureType.POINT, 1000.0)
        assert machine.charge_progress(1000.0) == 0.0
        assert machine.charge_progress(1500.0) == pytest.approx(0.5)
        assert machine.charge_progress(5000.0) == 1.0

    def test_progress_idle(self, machine):
        assert machine.charge_progress(123.0) == 0.0

    def test_cancel(self, machine, ledger, bus):
        """Explicit cancel drops the charge without spending mana."""
        recorder = EventRecorder(bus, [Events.CHARGE_CANCELLED])
        feed(machine, [GestureType.FIST, GestureType.POINT])
        machine.cancel()
        assert machine.state == CastState.IDLE
        assert ledger.mana == 100
        assert recorder.count(Events.CHARGE_CANCELLED) == 1


class TestSpellBook:
    """Test suite for catalog loading and validation."""

    def test_default_catalog(self, spell_book):
        assert len(spell_book) == 3
        assert "fireball" in spell_book
        fireball = spell_book.get("fireball")
        assert fireball.damage == 30
        assert fireball.mana_cost == 15
        assert fireball.charge_time_ms == 1000
        assert spell_book.for_gesture(GestureType.PEACE).id == "waterwave"
        assert spell_book.for_gesture(GestureType.FIST) is None

    def _entry(self, **overrides):
        entry = {"id": "frost", "damage": 10, "mana_cost": 5,
                 "gesture": "point", "charge_time_ms": 500}
        entry.update(overrides)
        return entry

    def test_unknown_gesture(self):
        with pytest.raises(ConfigError):
            spell_from_dict(self._entry(gesture="thumbs_up"))

    def test_non_trigger_gesture(self):
        with pytest.raises(ConfigError):
            spell_from_dict(self._entry(gesture="palm"))

    def test_negative_cost(self):
        with pytest.raises(ConfigError):
            spell_from_dict(self._entry(mana_cost=-1))

    def test_non_positive_damage(self):
        with pytest.raises(ConfigError):
            spell_from_dict(self._entry(damage=0))

    def test_missing_field(self):
        entry = self._entry()
        del entry["charge_time_ms"]
        with pytest.raises(ConfigError):
            spell_from_dict(entry)

    def test_duplicate_gesture(self):
        with pytest.raises(ConfigError):
            SpellBook.from_entries([self._entry(), self._entry(id="ember")])

    def test_duplicate_id(self):
        with pytest.raises(ConfigError):
            SpellBook.from_entries([self._entry(), self._entry(gesture="rock")])
