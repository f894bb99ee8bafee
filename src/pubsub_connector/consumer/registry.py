"""Ordered registry of message consumers."""

import threading

from pubsub_connector.protocols.consumer import MessageConsumer


class ReceiverRegistry:
    """
    Append-only, ordered list of consumers.

    Registration order is dispatch order. Dispatch reads a snapshot, so
    registering while the receive loop runs never races with iteration.
    """

    def __init__(self) -> None:
        self._consumers: list[MessageConsumer] = []
        self._lock = threading.Lock()

    def register(self, consumer: MessageConsumer) -> None:
        """Append a consumer. The same consumer may be registered more than once."""
        if not isinstance(consumer, MessageConsumer):
            raise TypeError(f"{type(consumer).__name__} does not implement consume(context, messages)")
        with self._lock:
            self._consumers.append(consumer)

    def snapshot(self) -> tuple[MessageConsumer, ...]:
        with self._lock:
            return tuple(self._consumers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._consumers)
