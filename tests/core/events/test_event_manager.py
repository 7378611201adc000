"""
Unit tests for the Event Manager system.

Tests the publisher-subscriber bus that connects the dispatch engine to the
renderer, the progression store and the logger.
"""

from unittest.mock import Mock

from vaultterm.core.events import (
    EventType,
    FlagSet,
    LogMessage,
    TerminalOutput,
)


class TestEventManager:
    """Test EventManager functionality."""

    def test_event_manager_creation(self, event_manager):
        assert not event_manager.enable_debug_logging
        assert event_manager.get_statistics()['events_published'] == 0
        assert event_manager.get_statistics()['events_processed'] == 0

    def test_events_are_tagged_with_their_type(self):
        assert TerminalOutput(text="x").event_type == EventType.TERMINAL_OUTPUT
        assert FlagSet(flag="f").event_type == EventType.FLAG_SET

    def test_publish_is_deferred_until_processing(self, event_manager):
        subscriber = Mock()
        event_manager.subscribe(EventType.FLAG_SET, subscriber)

        event = FlagSet(flag="found_credentials")
        event_manager.publish(event)

        subscriber.assert_not_called()
        assert event_manager.has_queued_events()

        assert event_manager.process_events() == 1
        subscriber.assert_called_once_with(event)
        assert not event_manager.has_queued_events()

    def test_publish_immediate_delivers_synchronously(self, event_manager):
        subscriber = Mock()
        event_manager.subscribe(EventType.TERMINAL_OUTPUT, subscriber)

        event_manager.publish_immediate(TerminalOutput(text="now"))

        subscriber.assert_called_once()
        assert not event_manager.has_queued_events()

    def test_subscribers_only_receive_their_type(self, event_manager):
        output_subscriber = Mock()
        flag_subscriber = Mock()
        event_manager.subscribe(EventType.TERMINAL_OUTPUT, output_subscriber)
        event_manager.subscribe(EventType.FLAG_SET, flag_subscriber)

        event_manager.publish_immediate(FlagSet(flag="x"))

        output_subscriber.assert_not_called()
        flag_subscriber.assert_called_once()

    def test_subscribe_returns_unsubscribe_callable(self, event_manager):
        subscriber = Mock()
        unsubscribe = event_manager.subscribe(EventType.FLAG_SET, subscriber)

        assert event_manager.subscriber_count(EventType.FLAG_SET) == 1
        assert unsubscribe() is True
        assert unsubscribe() is False
        assert event_manager.subscriber_count(EventType.FLAG_SET) == 0

        event_manager.publish_immediate(FlagSet(flag="x"))
        subscriber.assert_not_called()

    def test_failing_subscriber_does_not_block_others(self, event_manager):
        failing = Mock(side_effect=RuntimeError("boom"))
        healthy = Mock()
        event_manager.subscribe(EventType.FLAG_SET, failing)
        event_manager.subscribe(EventType.FLAG_SET, healthy)

        event_manager.publish_immediate(FlagSet(flag="x"))

        healthy.assert_called_once()

    def test_events_published_during_processing_wait_for_next_round(self, event_manager):
        seen = []

        def republish(event):
            seen.append(event.flag)
            event_manager.publish(LogMessage(message="follow-up", category="SYSTEM", level="INFO", source="test"))

        log_subscriber = Mock()
        event_manager.subscribe(EventType.FLAG_SET, republish)
        event_manager.subscribe(EventType.LOG_MESSAGE, log_subscriber)

        event_manager.publish(FlagSet(flag="x"))
        event_manager.process_events()

        assert seen == ["x"]
        log_subscriber.assert_not_called()
        assert event_manager.has_queued_events()

        event_manager.process_events()
        log_subscriber.assert_called_once()

    def test_queue_keeps_publication_order(self, event_manager):
        order = []
        event_manager.subscribe(EventType.FLAG_SET, lambda event: order.append(event.flag))

        for flag in ("first", "second", "third"):
            event_manager.publish(FlagSet(flag=flag))

        assert event_manager.process_events() == 3
        assert order == ["first", "second", "third"]

    def test_statistics(self, event_manager):
        event_manager.subscribe(EventType.TERMINAL_OUTPUT, Mock())
        event_manager.publish_immediate(TerminalOutput(text="a"), source="tester")
        event_manager.publish(FlagSet(flag="x"))

        stats = event_manager.get_statistics()
        assert stats['events_published'] == 2
        assert stats['events_processed'] == 1
        assert stats['events_queued'] == 1
        assert stats['subscribers_count'] == 1

    def test_debug_callback_receives_messages_when_enabled(self, event_manager):
        callback = Mock()
        event_manager.enable_debug_logging = True
        event_manager.set_debug_callback(callback)

        event_manager.publish(FlagSet(flag="x"))

        callback.assert_called()
        assert callback.call_args[0][0].startswith("[EVENT]")

    def test_shutdown_clears_everything(self, event_manager):
        event_manager.subscribe(EventType.FLAG_SET, Mock())
        event_manager.publish(FlagSet(flag="x"))

        event_manager.shutdown()

        assert event_manager.subscriber_count(EventType.FLAG_SET) == 0
        assert not event_manager.has_queued_events()
