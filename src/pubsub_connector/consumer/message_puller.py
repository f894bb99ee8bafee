"""Synchronous one-shot pull from a subscription."""

import logging

from pubsub_connector.connection import BrokerConnection
from pubsub_connector.models.message import InboundMessage

logger = logging.getLogger(__name__)


class MessagePuller:
    """
    Pulls a batch of messages on demand and acknowledges all of them.

    For callers that poll instead of running the delivery coordinator.
    """

    def __init__(self, connection: BrokerConnection, subscription: str):
        """
        Initialize the puller.

        Args:
            connection: Broker connection to borrow the transport from
            subscription: Subscription name or full path
        """
        self.connection = connection
        self.subscription = subscription

    def pull(self, max_messages: int = 1, timeout: float = 30) -> list[InboundMessage]:
        """
        Pull up to ``max_messages`` messages and acknowledge them.

        This method:
        1. Pulls from the subscription
        2. Wraps each message as an InboundMessage
        3. Acknowledges every received message in one request

        Returns:
            The received messages, possibly empty
        """
        transport = self.connection.transport
        subscription = transport.subscription_path(self.connection.project_id, self.subscription)

        response = transport.pull(
            request={"subscription": subscription, "max_messages": max_messages},
            timeout=timeout,
        )

        if not response.received_messages:
            return []  # No messages available

        messages = [InboundMessage.from_received(r.message) for r in response.received_messages]

        transport.acknowledge(
            request={
                "subscription": subscription,
                "ack_ids": [r.ack_id for r in response.received_messages],
            }
        )
        logger.debug("Pulled and acknowledged %d messages from %s", len(messages), subscription)
        return messages
