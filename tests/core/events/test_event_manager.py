"""
Unit tests for the Event Manager system.

Tests the event-driven communication system that enables decoupled
manager interactions through the publisher-subscriber pattern.
"""

from unittest.mock import Mock

from battlemap.core.events import (
    ActionRemoved,
    EventManager,
    EventPriority,
    EventType,
    LogMessage,
    QueuedEvent,
    RoundStarted,
)


def log_event(message="hello", event_number=1):
    return LogMessage(round_number=1, event_number=event_number, message=message,
                      category="SYSTEM", source="test")


class TestQueuedEvent:
    """Test QueuedEvent functionality."""

    def test_queued_event_creation(self):
        """Test basic queued event creation."""
        event = log_event()
        queued = QueuedEvent(event=event, priority=EventPriority.HIGH, source="test")

        assert queued.event == event
        assert queued.priority == EventPriority.HIGH
        assert queued.source == "test"

    def test_queued_event_ordering_by_priority(self):
        """Test that higher priority events sort first."""
        low = QueuedEvent(log_event(), EventPriority.LOW)
        normal = QueuedEvent(log_event(), EventPriority.NORMAL)
        critical = QueuedEvent(log_event(), EventPriority.CRITICAL)
        high = QueuedEvent(log_event(), EventPriority.HIGH)

        assert sorted([low, normal, critical, high]) == [critical, high, normal, low]

    def test_same_priority_keeps_publish_order(self):
        first = QueuedEvent(log_event("a"))
        second = QueuedEvent(log_event("b"))

        assert first < second
        assert not second < first


class TestEventManager:
    """Test EventManager functionality."""

    def test_event_type_is_set(self):
        assert log_event().event_type is EventType.LOG_MESSAGE
        assert RoundStarted(2, 4, previous_round=1).event_type is EventType.ROUND_STARTED

    def test_subscribe_and_publish(self, event_manager):
        """Test basic subscription and publishing."""
        subscriber = Mock()
        event_manager.subscribe(EventType.LOG_MESSAGE, subscriber)
        event = log_event()

        event_manager.publish(event)
        assert subscriber.call_count == 0

        assert event_manager.process_events() == 1
        subscriber.assert_called_once_with(event)

    def test_subscribers_only_get_their_type(self, event_manager):
        subscriber = Mock()
        event_manager.subscribe(EventType.ROUND_STARTED, subscriber)

        event_manager.publish(log_event())
        event_manager.process_events()

        subscriber.assert_not_called()

    def test_universal_subscriber(self, event_manager, recorder):
        event_manager.publish(log_event())
        event_manager.publish(RoundStarted(2, 1, previous_round=1))
        event_manager.process_events()

        assert [type(event) for event in recorder.events] == [LogMessage, RoundStarted]

    def test_priority_processing_order(self, event_manager, recorder):
        """Critical events are delivered before normal ones published earlier."""
        normal = log_event("normal")
        low = log_event("low")
        critical = log_event("critical")

        event_manager.publish(normal)
        event_manager.publish(low, priority=EventPriority.LOW)
        event_manager.publish(critical, priority=EventPriority.CRITICAL)
        event_manager.process_events()

        assert [event.message for event in recorder.events] == ["critical", "normal", "low"]

    def test_fifo_within_priority(self, event_manager, recorder):
        for index in range(5):
            event_manager.publish(log_event(str(index)))
        event_manager.process_events()

        assert [event.message for event in recorder.events] == ["0", "1", "2", "3", "4"]

    def test_events_published_during_processing_are_flushed(self, event_manager, recorder):
        """A single flush also delivers events published by subscribers."""
        def republish(event):
            if event.message == "first":
                event_manager.publish(log_event("second"))

        event_manager.subscribe(EventType.LOG_MESSAGE, republish)
        event_manager.publish(log_event("first"))

        assert event_manager.process_events() == 2
        assert [event.message for event in recorder.events] == ["first", "second"]
        assert not event_manager.has_queued_events()

    def test_max_events_leaves_rest_queued(self, event_manager, recorder):
        for index in range(3):
            event_manager.publish(log_event(str(index)))

        assert event_manager.process_events(max_events=2) == 2
        assert event_manager.has_queued_events()

        event_manager.process_events()
        assert [event.message for event in recorder.events] == ["0", "1", "2"]

    def test_subscriber_errors_are_isolated(self, event_manager):
        """A failing subscriber does not stop delivery to the others."""
        failing = Mock(side_effect=RuntimeError("boom"))
        healthy = Mock()
        event_manager.subscribe(EventType.LOG_MESSAGE, failing)
        event_manager.subscribe(EventType.LOG_MESSAGE, healthy)

        event_manager.publish(log_event())
        event_manager.process_events()

        healthy.assert_called_once()
        assert event_manager.get_statistics()['subscriber_errors'] == 1

    def test_publish_immediate(self, event_manager):
        subscriber = Mock()
        event_manager.subscribe(EventType.ACTION_REMOVED, subscriber)

        event_manager.publish_immediate(ActionRemoved(1, 1, action_id="a1"))

        subscriber.assert_called_once()
        assert not event_manager.has_queued_events()

    def test_unsubscribe(self, event_manager):
        subscriber = Mock()
        event_manager.subscribe(EventType.LOG_MESSAGE, subscriber)

        assert event_manager.unsubscribe(EventType.LOG_MESSAGE, subscriber)
        assert not event_manager.unsubscribe(EventType.LOG_MESSAGE, subscriber)

        event_manager.publish(log_event())
        event_manager.process_events()
        subscriber.assert_not_called()

    def test_unsubscribe_all(self, event_manager, recorder):
        assert event_manager.unsubscribe_all(recorder)
        assert not event_manager.unsubscribe_all(recorder)

    def test_clear_queue(self, event_manager):
        event_manager.publish(log_event())
        event_manager.publish(log_event())

        assert event_manager.clear_queue() == 2
        assert event_manager.process_events() == 0

    def test_statistics(self, event_manager):
        event_manager.subscribe(EventType.LOG_MESSAGE, Mock())
        event_manager.publish(log_event())
        event_manager.publish(log_event())
        event_manager.process_events(max_events=1)

        stats = event_manager.get_statistics()

        assert stats['events_published'] == 2
        assert stats['events_processed'] == 1
        assert stats['events_queued'] == 1
        assert stats['subscribers_count'] == 1

    def test_recent_events(self, event_manager):
        event_manager.publish(log_event(event_number=3), priority=EventPriority.HIGH, source="pipeline")
        event_manager.process_events()

        recent = event_manager.get_recent_events()

        assert recent[-1]['event_type'] == "LogMessage"
        assert recent[-1]['event'] == 3
        assert recent[-1]['priority'] == "HIGH"
        assert recent[-1]['source'] == "pipeline"

    def test_history_size_is_bounded(self):
        manager = EventManager(history_size=2)
        for index in range(5):
            manager.publish(log_event(str(index)))
        manager.process_events()

        assert manager.get_statistics()['event_history_size'] == 2

    def test_debug_callback(self):
        messages = []
        manager = EventManager(enable_debug_logging=True)
        manager.set_debug_callback(messages.append)

        manager.publish(log_event(event_number=2))
        manager.process_events()

        assert any(message.startswith("[EVENT] Published LogMessage") for message in messages)
        assert any("(round: 1, event: 2)" in message for message in messages)

    def test_shutdown(self, event_manager, recorder):
        event_manager.publish(log_event())
        event_manager.shutdown()

        assert event_manager.process_events() == 0
        assert recorder.events == []
