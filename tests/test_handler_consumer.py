"""Tests for HandlerConsumer."""

import json
from unittest.mock import Mock

import pytest
from pydantic import BaseModel

from pubsub_connector.consumer.handler_consumer import HandlerConsumer
from pubsub_connector.models.message import InboundMessage
from pubsub_connector.protocols.consumer import DeliveryContext, MessageConsumer


class TestRequest(BaseModel):
    """Test request model for validation."""

    __test__ = False

    request_id: str
    data: str


def inbound(message_id, payload, attributes=None):
    data = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    return InboundMessage(message_id=message_id, data=data, attributes=attributes or {})


class TestHandlerConsumer:
    """Test HandlerConsumer class."""

    @pytest.fixture
    def mock_handler(self):
        """Create a mock handler."""
        return Mock()

    @pytest.fixture
    def context(self):
        """Create a delivery context."""
        return DeliveryContext(subscription="orders-sub")

    @pytest.fixture
    def consumer(self, mock_handler):
        """Create a HandlerConsumer routing on the order type."""
        return HandlerConsumer(mock_handler, TestRequest, attributes={"type": "order"})

    def test_implements_consumer_protocol(self, consumer):
        """HandlerConsumer satisfies MessageConsumer."""
        assert isinstance(consumer, MessageConsumer)

    def test_valid_matching_message_is_handled(self, consumer, mock_handler, context):
        """A matching, valid payload is validated and routed to the handler."""
        message = inbound("m1", {"request_id": "req-1", "data": "d"}, {"type": "order"})

        verdicts = consumer.consume(context, [message])

        assert verdicts == {"m1": True}
        request = mock_handler.handle.call_args[0][0]
        assert isinstance(request, TestRequest)
        assert request.request_id == "req-1"

    def test_non_matching_attributes_are_declined(self, consumer, mock_handler, context):
        """Messages of another type are declined without calling the handler."""
        message = inbound("m1", {"request_id": "req-1", "data": "d"}, {"type": "invoice"})

        assert consumer.consume(context, [message]) == {"m1": False}
        mock_handler.handle.assert_not_called()

    def test_invalid_payload_is_declined(self, consumer, mock_handler, context):
        """A payload failing validation is declined."""
        message = inbound("m1", {"request_id": "req-1"}, {"type": "order"})

        assert consumer.consume(context, [message]) == {"m1": False}
        mock_handler.handle.assert_not_called()

    def test_malformed_json_is_declined(self, consumer, mock_handler, context):
        """Malformed JSON is declined."""
        message = inbound("m1", b"{invalid json", {"type": "order"})

        assert consumer.consume(context, [message]) == {"m1": False}

    def test_handler_errors_propagate(self, consumer, mock_handler, context):
        """Handler exceptions reach the coordinator."""
        mock_handler.handle.side_effect = RuntimeError("downstream failed")
        message = inbound("m1", {"request_id": "req-1", "data": "d"}, {"type": "order"})

        with pytest.raises(RuntimeError):
            consumer.consume(context, [message])

    def test_no_attribute_filter_accepts_everything(self, mock_handler, context):
        """Without an attribute filter every valid payload is handled."""
        consumer = HandlerConsumer(mock_handler, TestRequest)
        message = inbound("m1", {"request_id": "req-1", "data": "d"})

        assert consumer.consume(context, [message]) == {"m1": True}
