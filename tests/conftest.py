"""Shared fixtures for connector unit tests."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from pubsub_connector.connection import BrokerConnection

PROJECT_ID = "proj-1"


@pytest.fixture
def mock_transport():
    """Create a mock transport with GCP-style path helpers."""
    transport = Mock()
    transport.topic_path.side_effect = lambda project, topic: f"projects/{project}/topics/{topic}"
    transport.subscription_path.side_effect = (
        lambda project, sub: f"projects/{project}/subscriptions/{sub}"
    )
    return transport


@pytest.fixture
def connection(mock_transport):
    """Create a BrokerConnection around the mock transport."""
    return BrokerConnection(mock_transport, PROJECT_ID)


@pytest.fixture
def make_delivered():
    """Factory for broker-delivered messages with ack()/nack() mocks."""

    def _make(message_id="m1", data=b'{"x": 1}', attributes=None):
        message = Mock()
        message.message_id = message_id
        message.data = data
        message.publish_time = datetime(2024, 1, 1, tzinfo=timezone.utc)
        message.attributes = attributes or {}
        return message

    return _make
