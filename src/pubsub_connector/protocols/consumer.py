"""Consumer protocol definitions."""

import threading
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from pubsub_connector.models.message import InboundMessage


@dataclass(frozen=True)
class DeliveryContext:
    """Per-dispatch context passed to consumers."""

    subscription: str
    cancelled: threading.Event = field(default_factory=threading.Event)

    def is_cancelled(self) -> bool:
        """True once the receive loop has been asked to stop."""
        return self.cancelled.is_set()


@runtime_checkable
class MessageConsumer(Protocol):
    """
    Protocol for consumers registered with the delivery coordinator.

    Every registered consumer sees every message. A consumer reports which
    messages it handled; the coordinator owns the final ack/nack.
    """

    def consume(
        self, context: DeliveryContext, messages: Sequence[InboundMessage]
    ) -> Mapping[str, bool]:
        """
        Process a batch of inbound messages.

        Args:
            context: Delivery context for this dispatch
            messages: Messages to process (currently always one)

        Returns:
            Mapping of message_id to True for each message that should be acked

        Note:
            Raising counts as "not handled" for every message in the batch; it
            does not stop other consumers from being called.
        """
        ...


@runtime_checkable
class MessageHandler(Protocol):
    """
    Application callback wrapped by HandlerConsumer.

    Receives the payload already validated against the consumer's request
    model. Returning normally marks the message as handled; raising leaves it
    to the other consumers, and to a nack if none of them accepts it.
    """

    def handle(self, request: Any) -> None:
        ...
