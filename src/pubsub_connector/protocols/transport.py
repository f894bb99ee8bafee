"""Broker transport protocol definitions."""

from concurrent.futures import Future
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol, TypedDict, runtime_checkable


class PullRequest(TypedDict):
    subscription: str
    max_messages: int


class AcknowledgeRequest(TypedDict):
    subscription: str
    ack_ids: list[str]


class ListRequest(TypedDict):
    """Listing scope, always "projects/<project>"."""

    project: str


@runtime_checkable
class DeliveredMessage(Protocol):
    """A message handed to a streaming pull callback."""

    message_id: str
    data: bytes
    publish_time: Optional[datetime]
    attributes: Mapping[str, str]

    def ack(self) -> None:
        """Tell the broker the message was handled."""
        ...

    def nack(self) -> None:
        """Tell the broker the message was not handled and may be redelivered."""
        ...


@runtime_checkable
class StreamingPull(Protocol):
    """Handle on a running streaming pull, shaped like a StreamingPullFuture."""

    def cancel(self) -> Any:
        """Request shutdown of the stream."""
        ...

    def result(self, timeout: Optional[float] = None) -> Any:
        """
        Block until the stream terminates.

        Raises the terminating error if the stream ended abnormally.
        """
        ...


@runtime_checkable
class BrokerTransport(Protocol):
    """
    Capability surface of a topic/subscription message broker.

    Implementations own connection establishment, retries, flow control and
    the wire protocol; the connector only borrows these operations.
    """

    def topic_path(self, project: str, topic: str) -> str:
        """Return the fully qualified name of a topic."""
        ...

    def subscription_path(self, project: str, subscription: str) -> str:
        """Return the fully qualified name of a subscription."""
        ...

    def publish(self, topic: str, data: bytes, attributes: Mapping[str, str]) -> "Future[str]":
        """
        Submit a message to a topic.

        Args:
            topic: Fully qualified topic name
            data: Message data as bytes
            attributes: Message attributes

        Returns:
            Future resolving to the broker-assigned message ID
        """
        ...

    def stream_pull(
        self,
        subscription: str,
        callback: Callable[[DeliveredMessage], None],
        *,
        max_outstanding_messages: int,
    ) -> StreamingPull:
        """
        Start delivering messages from a subscription to ``callback``.

        Returns immediately; the callback runs on transport-owned threads.
        """
        ...

    def pull(self, request: PullRequest, timeout: float) -> Any:
        """
        Pull messages from a subscription synchronously.

        Returns:
            Pull response with received_messages
        """
        ...

    def acknowledge(self, request: AcknowledgeRequest) -> None:
        """Acknowledge pulled messages by ack_id."""
        ...

    def list_topics(self, project: str) -> Iterable[Any]:
        """Iterate topic descriptors (objects with a ``name``) of a project."""
        ...

    def list_subscriptions(self, project: str) -> Iterable[Any]:
        """Iterate subscription descriptors (objects with a ``name``) of a project."""
        ...

    def close(self) -> None:
        """Release the underlying clients."""
        ...
