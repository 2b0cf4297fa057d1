"""
Integration Tests for the Game Session
=======================================
"""

import numpy as np
import pytest

from spellcaster.casting.cast_machine import CastState
from spellcaster.core.events import EventBus, Events
from spellcaster.core.session import GameSession
from spellcaster.core.types import GestureType
from spellcaster.utils.config import Config

from conftest import EventRecorder, make_hand

ALL_EVENTS = [v for k, v in vars(Events).items() if k.isupper()]
FRAME_MS = 16.0
# Index tip 300 px left of the default target at (960, 360)
LAUNCH = (660.0, 360.0)


def cast_fireball(session, tip=LAUNCH):
    session.on_hand(make_hand("fist", tip))
    session.on_hand(make_hand("point", tip))
    session.tick(FRAME_MS)
    session.on_hand(make_hand("palm", tip))


class TestGameSession:
    """Test suite for the gesture -> cast -> combat pipeline."""

    def test_full_cast_to_hit(self, session, bus):
        recorder = EventRecorder(bus, [Events.SPELL_CAST, Events.SPELL_HIT,
                                       Events.EXPERIENCE_GAINED])
        cast_fireball(session)
        assert session.ledger.mana == 85
        assert len(session.combat.projectiles) == 1
        assert session.combat.combo_count == 1

        hits = []
        for _ in range(18):
            hits.extend(session.tick(FRAME_MS))
        assert hits == []
        hits = session.tick(FRAME_MS)

        assert len(hits) == 1
        assert hits[0]["damage"] == pytest.approx(33.0)
        assert session.combat.target.health == pytest.approx(467.0)
        assert session.ledger.experience == 5
        assert recorder.names() == [Events.SPELL_CAST, Events.SPELL_HIT,
                                    Events.EXPERIENCE_GAINED]

    def test_projectile_launches_from_index_tip(self, session):
        cast_fireball(session, tip=(100.0, 200.0))
        p = session.combat.projectiles[0]
        assert (p.target_x, p.target_y) == (960.0, 360.0)
        assert p.distance_to_target() == pytest.approx(np.hypot(860.0, 160.0))

    def test_gesture_events(self, session, bus):
        recorder = EventRecorder(bus, [Events.HAND_DETECTED, Events.HAND_LOST,
                                       Events.GESTURE_CHANGED])
        session.on_hand(make_hand("fist"))
        session.on_hand(make_hand("fist"))
        session.on_hand(None)
        assert recorder.names() == [Events.HAND_DETECTED, Events.GESTURE_CHANGED,
                                    Events.HAND_LOST, Events.GESTURE_CHANGED]
        assert session.current_gesture == GestureType.NONE

    def test_hand_loss_keeps_charge(self, session):
        session.on_hand(make_hand("fist"))
        session.on_hand(make_hand("rock"))
        for _ in range(10):
            session.on_hand(None)
            session.tick(FRAME_MS)
        assert session.caster.state == CastState.CHARGING

    def test_mana_regeneration(self, session):
        cast_fireball(session)
        assert session.ledger.mana == 85
        # cast_fireball already advanced one frame
        session.tick(5000 - FRAME_MS)
        assert session.ledger.mana == 95

    def test_stop_cancels_everything(self, session, bus):
        """After stop, no timer fires and nothing is emitted or mutated."""
        cast_fireball(session)
        session.stop()
        assert session.scheduler.pending == 0
        assert session.combat.projectiles == []
        assert session.caster.state == CastState.IDLE

        recorder = EventRecorder(bus, ALL_EVENTS)
        mana = session.ledger.mana
        combo = session.combat.combo_count
        for _ in range(100):
            session.on_hand(make_hand("palm"))
            assert session.tick(100.0) == []
        assert recorder.events == []
        assert session.ledger.mana == mana
        assert session.combat.combo_count == combo

    def test_stop_during_respawn(self, bus):
        """stop() drops a pending respawn; start() re-arms it in full."""
        config = Config({"combat": {"target_health": 10.0}})
        session = GameSession(config, event_bus=bus, rng=np.random.default_rng(1))
        session.start()
        cast_fireball(session, tip=(950.0, 360.0))
        session.tick(FRAME_MS)
        assert session.combat.target.defeated
        session.stop()
        assert session.scheduler.pending == 0
        session.start()
        session.tick(1000.0)
        assert session.combat.target.defeated
        session.tick(500.0)
        assert not session.combat.target.defeated
        assert session.ledger.experience == 55

    def test_restart_drops_combo(self, session):
        cast_fireball(session)
        session.stop()
        assert session.combat.combo_count == 1
        session.start()
        assert session.combat.combo_count == 0

    def test_stop_from_cast_handler(self, session, bus):
        """A spell_cast listener that stops the session gets no projectile."""
        bus.subscribe(Events.SPELL_CAST, lambda **_: session.stop())
        cast_fireball(session, tip=(100.0, 360.0))
        assert not session.running
        assert session.combat.projectiles == []
        assert session.combat.combo_count == 0
        assert session.scheduler.pending == 0

    def test_stop_from_hit_handler(self, session, bus):
        bus.subscribe(Events.SPELL_HIT, lambda **_: session.stop())
        cast_fireball(session, tip=(950.0, 360.0))
        recorder = EventRecorder(bus, ALL_EVENTS)
        hits = session.tick(FRAME_MS)
        assert len(hits) == 1
        assert session.combat.projectiles == []
        assert session.scheduler.pending == 0
        assert session.ledger.experience == 0
        assert set(recorder.names()) == {Events.SPELL_HIT, Events.SESSION_STOPPED}

    def test_stop_from_hand_detected_handler(self, session, bus):
        bus.subscribe(Events.HAND_DETECTED, lambda **_: session.stop())
        recorder = EventRecorder(bus, [Events.GESTURE_CHANGED])
        session.on_hand(make_hand("fist"))
        assert recorder.events == []
        assert session.current_gesture == GestureType.NONE

    def test_stop_while_spending_mana(self, session, bus):
        bus.subscribe(Events.MANA_CHANGED, lambda **_: session.stop())
        recorder = EventRecorder(bus, [Events.SPELL_CAST])
        cast_fireball(session)
        assert recorder.events == []
        assert session.combat.projectiles == []
        assert session.caster.cast_count == 0

    def test_restart_rearms_regen(self, session):
        session.ledger.try_spend(50)
        session.stop()
        session.start()
        session.tick(1000.0)
        assert session.ledger.mana == 52

    def test_reset(self, session):
        cast_fireball(session)
        session.reset()
        assert session.running
        assert session.ledger.mana == 100
        assert session.combat.projectiles == []
        assert session.combat.hit_count == 0
        assert session.scheduler.pending == 1

    def test_not_running_ignores_input(self, bus):
        session = GameSession(Config(), event_bus=bus)
        assert session.on_hand(make_hand("fist")) == GestureType.NONE
        assert session.tick(1000.0) == []
        assert session.ledger.mana == 100

    def test_build_state(self, session):
        session.on_hand(make_hand("fist"))
        session.on_hand(make_hand("peace"))
        session.tick(400.0)
        state = session.build_state()
        assert state["running"]
        assert state["gesture_name"] == "peace"
        assert state["hand_detected"]
        assert state["hand_landmarks"].shape == (21, 3)
        assert state["charging"]
        assert state["charge_spell"]["id"] == "waterwave"
        assert state["charge_progress"] == pytest.approx(0.5)
        assert state["mana"] == 100
        assert state["level"] == 1
        assert state["target"]["health"] == 500.0
        assert state["projectiles"] == []

    def test_build_state_projectiles(self, session):
        cast_fireball(session)
        session.tick(FRAME_MS)
        state = session.build_state()
        assert len(state["projectiles"]) == 1
        proj = state["projectiles"][0]
        assert proj["spell"] == "fireball"
        assert len(proj["particles"]) == 3
        x, y, size, life, color = proj["particles"][0]
        assert 2.0 <= size <= 6.0
        assert color == "#ffa500"

    def test_custom_event_bus_per_session(self):
        a, b = GameSession(), GameSession()
        assert a.event_bus is not b.event_bus
        assert isinstance(a.event_bus, EventBus)
