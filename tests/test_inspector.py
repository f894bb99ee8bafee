"""Tests for TopicInspector."""

from unittest.mock import Mock

import pytest

from pubsub_connector.inspector import TopicInspector, iter_tolerant
from pubsub_connector.models.response import Resource


class FlakyListing:
    """Listing iterator that raises for chosen positions and keeps going."""

    def __init__(self, entries):
        self._entries = iter(entries)

    def __iter__(self):
        return self

    def __next__(self):
        entry = next(self._entries)
        if isinstance(entry, Exception):
            raise entry
        return entry


class AlwaysFailing:
    """Listing iterator that never yields an entry."""

    def __init__(self):
        self.calls = 0

    def __iter__(self):
        return self

    def __next__(self):
        self.calls += 1
        raise RuntimeError("permission denied")


def topic(name):
    return Resource(name=f"projects/proj-1/topics/{name}")


def subscription(name):
    return Resource(name=f"projects/proj-1/subscriptions/{name}")


class TestIterTolerant:
    """Test iter_tolerant."""

    def test_skips_failing_entries(self):
        """Entries that raise are skipped, the rest are yielded."""
        listing = FlakyListing(["a", RuntimeError("x"), "b"])

        assert list(iter_tolerant(listing)) == ["a", "b"]

    def test_stops_after_consecutive_errors(self):
        """A permanently failing iterator ends after the error limit."""
        listing = AlwaysFailing()

        assert list(iter_tolerant(listing, max_consecutive_errors=3)) == []
        assert listing.calls == 3

    def test_failed_generator_ends_iteration(self):
        """A generator that raises is exhausted, so iteration ends."""

        def generator():
            yield "a"
            raise RuntimeError("page fetch failed")

        assert list(iter_tolerant(generator())) == ["a"]


class TestTopicInspector:
    """Test TopicInspector."""

    @pytest.fixture
    def inspector(self, connection):
        """Create an inspector for the orders topic and subscription."""
        return TopicInspector(connection, "orders", "orders-sub")

    def test_topic_found(self, inspector, mock_transport):
        """topic_exists() is True when the qualified name is listed."""
        mock_transport.list_topics.return_value = [topic("other"), topic("orders")]

        assert inspector.topic_exists() is True
        mock_transport.list_topics.assert_called_once_with("proj-1")

    def test_topic_missing(self, inspector, mock_transport):
        """topic_exists() is False once the listing is exhausted."""
        mock_transport.list_topics.return_value = [topic("other")]

        assert inspector.topic_exists() is False

    def test_match_before_failing_entry(self, connection, mock_transport):
        """Listing [t1, t2] where t2 errors: t1 is still found."""
        mock_transport.list_topics.return_value = FlakyListing([topic("t1"), RuntimeError("transient")])
        inspector = TopicInspector(connection, "t1", "sub")

        assert inspector.topic_exists() is True

    def test_match_after_failing_entry(self, inspector, mock_transport):
        """A failing entry does not hide a later match."""
        mock_transport.list_topics.return_value = FlakyListing(
            [topic("a"), RuntimeError("inaccessible"), topic("orders")]
        )

        assert inspector.topic_exists() is True

    def test_stops_at_first_match(self, inspector, mock_transport):
        """Iteration stops once the target is found."""
        after = Mock(side_effect=AssertionError("read past match"))

        def listing(project):
            yield topic("orders")
            after()

        mock_transport.list_topics.side_effect = listing

        assert inspector.topic_exists() is True
        after.assert_not_called()

    def test_fully_qualified_config_name(self, connection, mock_transport):
        """A configured name that is already qualified is matched as-is."""
        mock_transport.topic_path.side_effect = lambda project, name: name
        mock_transport.list_topics.return_value = [topic("orders")]
        inspector = TopicInspector(connection, "projects/proj-1/topics/orders", "sub")

        assert inspector.topic_exists() is True

    def test_topic_name_override(self, inspector, mock_transport):
        """An explicit topic name overrides the configured one."""
        mock_transport.list_topics.return_value = [topic("audit")]

        assert inspector.topic_exists("audit") is True
        assert inspector.topic_exists() is False

    def test_get_topic_info_returns_descriptor(self, inspector, mock_transport):
        """get_topic_info() returns the matching descriptor."""
        expected = topic("orders")
        mock_transport.list_topics.return_value = [expected]

        assert inspector.get_topic_info() is expected

    def test_subscription_found(self, inspector, mock_transport):
        """subscription_exists() matches the qualified subscription name."""
        mock_transport.list_subscriptions.return_value = FlakyListing(
            [RuntimeError("x"), subscription("orders-sub")]
        )

        assert inspector.subscription_exists() is True
        mock_transport.list_subscriptions.assert_called_once_with("proj-1")

    def test_subscription_missing(self, inspector, mock_transport):
        """subscription_exists() is False when nothing matches."""
        mock_transport.list_subscriptions.return_value = [subscription("other")]

        assert inspector.subscription_exists() is False

    def test_list_subscriptions_skips_errors(self, inspector, mock_transport):
        """list_subscriptions() returns every entry that iterated cleanly."""
        mock_transport.list_subscriptions.return_value = FlakyListing(
            [subscription("a"), RuntimeError("x"), subscription("b")]
        )

        names = [s.name for s in inspector.list_subscriptions()]

        assert names == [
            "projects/proj-1/subscriptions/a",
            "projects/proj-1/subscriptions/b",
        ]
