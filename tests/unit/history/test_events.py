"""Tests for lifecycle event variants."""

from datetime import datetime

import pytest

pytestmark = pytest.mark.unit


class TestLifecycleEvents:
    def test_auto_generated_id(self):
        """Events should auto-generate a ULID id."""
        from placement_history.history.events import StopEvent

        event = StopEvent(instance_id=1, timestamp=datetime(2019, 12, 31))

        assert len(event.id) == 26

    def test_explicit_id_kept(self):
        from placement_history.history.events import StopEvent

        event = StopEvent(id="insert-id-1", instance_id=1, timestamp=datetime(2019, 12, 31))

        assert event.id == "insert-id-1"

    def test_type_tags(self):
        from placement_history.history.events import (
            EventType,
            InsertEvent,
            PlacementEvent,
            StopEvent,
        )

        ts = datetime(2019, 12, 31)

        assert InsertEvent(instance_id=1, timestamp=ts).type == EventType.INSERT
        assert StopEvent(instance_id=1, timestamp=ts).type == EventType.STOP
        assert PlacementEvent(instance_id=1, timestamp=ts, node_id="n").type == EventType.SET_PLACEMENT

    def test_stop_reason_defaults_to_stop(self):
        from placement_history.history.events import StopEvent, StopReason

        event = StopEvent(instance_id=1, timestamp=datetime(2019, 12, 31))

        assert event.reason == StopReason.STOP

    def test_events_are_frozen(self):
        from pydantic import ValidationError

        from placement_history.history.events import PlacementEvent

        event = PlacementEvent(instance_id=1, timestamp=datetime(2019, 12, 31), node_id="n")

        with pytest.raises(ValidationError):
            event.node_id = "other"


class TestParseEvents:
    def test_dispatches_on_type(self):
        from placement_history.history.events import (
            InsertEvent,
            PlacementEvent,
            StopEvent,
            StopReason,
            parse_events,
        )

        events = parse_events(
            [
                {
                    "type": "STOP",
                    "instance_id": 1,
                    "timestamp": "2019-12-31T00:00:00",
                    "reason": "DELETE",
                },
                {
                    "type": "SET_PLACEMENT",
                    "instance_id": 1,
                    "timestamp": "2019-12-30T00:00:00",
                    "node_id": "server-1",
                },
                {
                    "type": "INSERT",
                    "instance_id": 1,
                    "timestamp": "2019-12-29T00:00:00",
                    "reference": {"project_id": "p", "zone": "z", "name": "n"},
                    "image": {"project_id": "p", "name": "i"},
                },
            ]
        )

        assert isinstance(events[0], StopEvent)
        assert events[0].reason == StopReason.DELETE
        assert isinstance(events[1], PlacementEvent)
        assert events[1].node_id == "server-1"
        assert isinstance(events[2], InsertEvent)
        assert events[2].image is not None
        assert events[2].image.name == "i"
        assert events[2].timestamp == datetime(2019, 12, 29)

    def test_unknown_type_rejected(self):
        from pydantic import ValidationError

        from placement_history.history.events import parse_events

        with pytest.raises(ValidationError):
            parse_events([{"type": "REBOOT", "instance_id": 1, "timestamp": "2019-12-31T00:00:00"}])

    def test_placement_without_node_rejected(self):
        from pydantic import ValidationError

        from placement_history.history.events import parse_events

        with pytest.raises(ValidationError):
            parse_events(
                [{"type": "SET_PLACEMENT", "instance_id": 1, "timestamp": "2019-12-31T00:00:00"}]
            )


class TestNewestFirst:
    def test_sorts_descending(self):
        from placement_history.history.events import InsertEvent, StopEvent, newest_first

        insert = InsertEvent(instance_id=1, timestamp=datetime(2019, 12, 29))
        stop = StopEvent(instance_id=1, timestamp=datetime(2019, 12, 31))

        assert newest_first([insert, stop]) == [stop, insert]

    def test_ties_keep_log_order(self):
        from placement_history.history.events import PlacementEvent, newest_first

        ts = datetime(2019, 12, 30)
        first = PlacementEvent(instance_id=1, timestamp=ts, node_id="a")
        second = PlacementEvent(instance_id=1, timestamp=ts, node_id="b")

        assert newest_first([first, second]) == [first, second]
