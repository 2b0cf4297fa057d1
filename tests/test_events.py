"""
Tests for the Event Bus
========================
"""

from spellcaster.core.events import EventBus, Events


class TestEventBus:
    """Test suite for subscribe/emit dispatch."""

    def test_emit_passes_kwargs(self, bus):
        received = []
        bus.subscribe(Events.MANA_CHANGED, lambda **kw: received.append(kw))
        bus.emit(Events.MANA_CHANGED, mana=85, delta=-15)
        assert received == [{"mana": 85, "delta": -15}]

    def test_priority_order(self, bus):
        order = []
        bus.subscribe("evt", lambda: order.append("low"), priority=0)
        bus.subscribe("evt", lambda: order.append("high"), priority=10)
        bus.emit("evt")
        assert order == ["high", "low"]

    def test_handler_error_does_not_propagate(self, bus):
        """A failing sink neither raises into the core nor blocks other sinks."""
        received = []

        def broken(**_):
            raise RuntimeError("sink down")

        bus.subscribe(Events.SPELL_CAST, broken, priority=5)
        bus.subscribe(Events.SPELL_CAST, lambda **kw: received.append(kw))
        bus.emit(Events.SPELL_CAST, spell="fireball")
        assert received == [{"spell": "fireball"}]

    def test_unsubscribe(self, bus):
        received = []

        def handler(**kw):
            received.append(kw)

        bus.subscribe("evt", handler)
        bus.unsubscribe("evt", handler)
        bus.emit("evt", x=1)
        assert received == []

    def test_clear(self, bus):
        bus.subscribe("a", print)
        bus.subscribe("b", print)
        bus.clear("a")
        assert bus.registered_events == ["b"]
        bus.clear()
        assert bus.listener_count == 0

    def test_history(self):
        bus = EventBus(max_history=3)
        for i in range(5):
            bus.emit(f"evt{i}", value=i)
        history = bus.get_history(10)
        assert [h["event"] for h in history] == ["evt2", "evt3", "evt4"]
        assert history[-1]["data_keys"] == ["value"]

    def test_buses_are_independent(self):
        received = []
        a, b = EventBus(), EventBus()
        a.subscribe("evt", lambda: received.append("a"))
        b.emit("evt")
        assert received == []
