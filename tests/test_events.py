"""Tests for EventBus and event types."""

from __future__ import annotations

import logging

from grantfs.events import EventBus, EventType, ShareEvent

# =========================================================================
# Helpers
# =========================================================================


def _failing_handler(event: ShareEvent) -> None:
    """Handler that always raises."""
    raise RuntimeError(f"boom on {event.file_system}")


# =========================================================================
# EventType / ShareEvent
# =========================================================================


class TestEventType:
    def test_member_count(self) -> None:
        assert len(EventType) == 5

    def test_unique_values(self) -> None:
        values = [et.value for et in EventType]
        assert len(values) == len(set(values))


class TestShareEvent:
    def test_construction(self) -> None:
        ev = ShareEvent(EventType.ACCESS_DENIED, file_system="docs", path="private/x")
        assert ev.event_type is EventType.ACCESS_DENIED
        assert ev.file_system == "docs"
        assert ev.path == "private/x"
        assert ev.count is None


# =========================================================================
# EventBus
# =========================================================================


class TestEventBus:
    def test_dispatch_in_order(self) -> None:
        bus = EventBus()
        seen: list[tuple[str, ShareEvent]] = []
        bus.register(EventType.GRANT_ADDED, lambda e: seen.append(("first", e)))
        bus.register(EventType.GRANT_ADDED, lambda e: seen.append(("second", e)))

        event = ShareEvent(EventType.GRANT_ADDED, file_system="docs")
        bus.emit(event)
        assert seen == [("first", event), ("second", event)]

    def test_other_types_not_dispatched(self) -> None:
        bus = EventBus()
        seen: list[ShareEvent] = []
        bus.register(EventType.ACCESS_GRANTED, seen.append)
        bus.emit(ShareEvent(EventType.ACCESS_DENIED, file_system="docs"))
        assert seen == []

    def test_failing_handler_logged(self, caplog) -> None:
        bus = EventBus()
        seen: list[ShareEvent] = []
        bus.register(EventType.GRANT_ADDED, _failing_handler)
        bus.register(EventType.GRANT_ADDED, seen.append)

        with caplog.at_level(logging.WARNING, logger="grantfs.events"):
            bus.emit(ShareEvent(EventType.GRANT_ADDED, file_system="docs"))

        assert len(seen) == 1
        assert "boom on docs" in caplog.text

    def test_unregister(self) -> None:
        bus = EventBus()
        bus.register(EventType.GRANT_ADDED, _failing_handler)
        assert bus.unregister(EventType.GRANT_ADDED, _failing_handler) is True
        assert bus.unregister(EventType.GRANT_ADDED, _failing_handler) is False
        assert bus.handler_count == 0

    def test_handler_may_unregister_itself(self) -> None:
        bus = EventBus()
        calls: list[ShareEvent] = []

        def once(event: ShareEvent) -> None:
            calls.append(event)
            bus.unregister(EventType.GRANT_ADDED, once)

        bus.register(EventType.GRANT_ADDED, once)
        bus.emit(ShareEvent(EventType.GRANT_ADDED))
        bus.emit(ShareEvent(EventType.GRANT_ADDED))
        assert len(calls) == 1

    def test_clear(self) -> None:
        bus = EventBus()
        bus.register(EventType.GRANT_ADDED, _failing_handler)
        bus.register(EventType.ACCESS_DENIED, _failing_handler)
        assert bus.handler_count == 2
        bus.clear()
        assert bus.handler_count == 0
