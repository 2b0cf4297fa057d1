"""
Tests for the Resource Ledger
==============================
"""

import pytest

from spellcaster.core.events import Events
from spellcaster.resources.ledger import ResourceLedger

from conftest import EventRecorder


class TestMana:
    """Test suite for mana spending and regeneration."""

    def test_defaults(self, ledger):
        assert ledger.mana == 100
        assert ledger.max_mana == 100
        assert ledger.level == 1
        assert ledger.experience == 0

    def test_spend(self, ledger):
        assert ledger.try_spend(15)
        assert ledger.mana == 85

    def test_spend_insufficient_no_mutation(self, bus):
        ledger = ResourceLedger({"initial_mana": 10}, bus)
        recorder = EventRecorder(bus, [Events.MANA_CHANGED])
        assert not ledger.try_spend(15)
        assert ledger.mana == 10
        assert recorder.events == []

    def test_spend_exact(self, bus):
        ledger = ResourceLedger({"initial_mana": 20})
        assert ledger.try_spend(20)
        assert ledger.mana == 0

    def test_negative_cost(self, ledger):
        with pytest.raises(ValueError):
            ledger.try_spend(-5)

    def test_regen_timer(self, scheduler, bus):
        """Mana 50 becomes 60 after 5000 ms of virtual time."""
        ledger = ResourceLedger({"initial_mana": 50}, bus)
        scheduler.call_every(1000, ledger.regenerate)
        fired = scheduler.advance(5000)
        assert fired == 5
        assert ledger.mana == 60

    def test_regen_capped(self, scheduler):
        ledger = ResourceLedger({"initial_mana": 99})
        scheduler.call_every(1000, ledger.regenerate)
        scheduler.advance(3000)
        assert ledger.mana == 100

    def test_regen_at_cap_is_silent(self, bus):
        ledger = ResourceLedger({}, bus)
        recorder = EventRecorder(bus, [Events.MANA_CHANGED])
        ledger.regenerate()
        assert recorder.events == []

    def test_initial_mana_clamped(self):
        assert ResourceLedger({"initial_mana": 500}).mana == 100


class TestExperience:
    """Test suite for experience and levels."""

    def test_level_up_wraps(self, bus):
        """90 XP + 50 -> level 2 with 40 XP."""
        ledger = ResourceLedger({"initial_experience": 90}, bus)
        recorder = EventRecorder(bus, [Events.LEVEL_UP])
        assert ledger.add_experience(50) is True
        assert ledger.level == 2
        assert ledger.experience == 40
        assert recorder.events == [(Events.LEVEL_UP, {"level": 2})]

    def test_exact_threshold(self, ledger):
        assert ledger.add_experience(100)
        assert ledger.level == 2
        assert ledger.experience == 0

    def test_below_threshold(self, ledger):
        assert ledger.add_experience(99) is False
        assert ledger.level == 1

    def test_single_wrap_per_grant(self, ledger):
        """A grant past two thresholds still levels up once."""
        ledger.add_experience(250)
        assert ledger.level == 2
        assert ledger.experience == 150

    def test_to_dict(self, ledger):
        ledger.try_spend(10)
        ledger.add_experience(5)
        assert ledger.to_dict() == {
            "mana": 90,
            "max_mana": 100,
            "experience": 5,
            "experience_per_level": 100,
            "level": 1,
        }
