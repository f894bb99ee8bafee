"""RabbitMQ transport implementing BrokerTransport protocol."""

import functools
import logging
import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

import pika
from pika.adapters.blocking_connection import BlockingChannel

from pubsub_connector.protocols.transport import AcknowledgeRequest, PullRequest
from pubsub_connector.models.response import Message, PullResponse, ReceivedMessage, Resource

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 10


def _split_topic(topic: str) -> tuple[str, str]:
    # "exchange:routing_key" or just "queue_name" (default exchange)
    if ":" in topic:
        exchange, routing_key = topic.split(":", 1)
        return exchange, routing_key
    return "", topic


def _publish_time(properties: Any) -> Optional[datetime]:
    timestamp = getattr(properties, "timestamp", None)
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def _attributes(properties: Any) -> dict[str, str]:
    headers = getattr(properties, "headers", None) or {}
    return {str(k): v.decode() if isinstance(v, bytes) else str(v) for k, v in headers.items()}


class RabbitMQDelivery:
    """
    A message delivered by a RabbitMQ consumer, settled at most once.

    Settlement is marshalled onto the consuming connection's thread, so it may
    be called from any thread.
    """

    def __init__(self, connection: pika.BlockingConnection, channel: BlockingChannel, method, properties, body: bytes):
        self._connection = connection
        self._channel = channel
        self._delivery_tag = method.delivery_tag
        self._settled = False
        self._lock = threading.Lock()
        self.message_id: str = getattr(properties, "message_id", None) or str(method.delivery_tag)
        self.data = body
        self.publish_time = _publish_time(properties)
        self.attributes = _attributes(properties)

    def _settle(self, action: Callable[..., Any], **kwargs: Any) -> None:
        with self._lock:
            if self._settled:
                # A second basic_ack/basic_nack on one tag closes the channel
                logger.debug("Delivery already settled: message_id=%s", self.message_id)
                return
            self._settled = True
        self._connection.add_callback_threadsafe(
            functools.partial(action, delivery_tag=self._delivery_tag, **kwargs)
        )

    def ack(self) -> None:
        self._settle(self._channel.basic_ack)

    def nack(self) -> None:
        self._settle(self._channel.basic_nack, requeue=True)


class RabbitMQStreamingPull:
    """
    Background consumer on a dedicated connection, shaped like a StreamingPullFuture.

    BlockingConnection is not thread-safe, so the consumer never shares the
    publishing connection.
    """

    def __init__(
        self,
        parameters: pika.ConnectionParameters,
        queue: str,
        callback: Callable[[RabbitMQDelivery], None],
        prefetch_count: int,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self._parameters = parameters
        self._queue = queue
        self._callback = callback
        self._prefetch_count = prefetch_count
        # Deliveries are dispatched off the I/O thread
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, min(max_workers, prefetch_count)),
            thread_name_prefix=f"rabbitmq-dispatch-{queue}",
        )
        self._done: "Future[None]" = Future()
        self._cancel_requested = threading.Event()
        self._connection: Optional[pika.BlockingConnection] = None
        self._channel: Optional[BlockingChannel] = None
        self._thread = threading.Thread(target=self._run, name=f"rabbitmq-consume-{queue}", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        try:
            connection = pika.BlockingConnection(self._parameters)
            channel = connection.channel()
            channel.basic_qos(prefetch_count=self._prefetch_count)
            self._channel = channel
            self._connection = connection
            if not self._cancel_requested.is_set():
                channel.basic_consume(queue=self._queue, on_message_callback=self._on_message)
                channel.start_consuming()
            # Let in-flight callbacks finish, then send the acks they scheduled
            self._executor.shutdown(wait=True)
            connection.process_data_events(time_limit=0)
            connection.close()
        except Exception as e:
            self._executor.shutdown(wait=False)
            self._done.set_exception(e)
            return
        self._done.set_result(None)

    def _on_message(self, channel: BlockingChannel, method, properties, body: bytes) -> None:
        delivery = RabbitMQDelivery(self._connection, channel, method, properties, body)
        self._executor.submit(self._dispatch, delivery)

    def _dispatch(self, delivery: RabbitMQDelivery) -> None:
        try:
            self._callback(delivery)
        except Exception:
            logger.exception("Callback failed for message: message_id=%s", delivery.message_id)
            delivery.nack()

    def cancel(self) -> bool:
        self._cancel_requested.set()
        connection, channel = self._connection, self._channel
        if connection is not None and channel is not None and connection.is_open:
            connection.add_callback_threadsafe(channel.stop_consuming)
        return True

    def result(self, timeout: Optional[float] = None) -> None:
        return self._done.result(timeout)


class _PassiveListing:
    """
    Iterates names that exist on the broker, checked with passive declares.

    A failed check raises from ``__next__`` for that entry only; iteration
    resumes with the next name on the following call.
    """

    def __init__(self, connection: pika.BlockingConnection, lock: threading.Lock, names: Sequence[str]):
        self._connection = connection
        self._lock = lock
        self._names = iter(names)

    def __iter__(self) -> "_PassiveListing":
        return self

    def __next__(self) -> Resource:
        name = next(self._names)
        exchange, queue = _split_topic(name)
        with self._lock:
            # A failed passive declare closes the channel, so use one per check
            channel = self._connection.channel()
            try:
                if exchange:
                    channel.exchange_declare(exchange=exchange, passive=True)
                else:
                    channel.queue_declare(queue=queue, passive=True)
            finally:
                if channel.is_open:
                    channel.close()
        return Resource(name=name)


class RabbitMQTransport:
    """
    RabbitMQ transport implementing BrokerTransport protocol.

    Topic format: "queue_name" or "exchange_name:routing_key"
    If no routing key provided, publishes directly to queue (default exchange).
    Subscriptions are queue names. RabbitMQ has no project namespace or
    listing API, so listings cover the names given at construction.
    """

    def __init__(
        self,
        parameters: pika.ConnectionParameters,
        topics: Sequence[str] = (),
        subscriptions: Sequence[str] = (),
    ):
        self._parameters = parameters
        self._topics = tuple(topics)
        self._subscriptions = tuple(subscriptions)
        self._connection = pika.BlockingConnection(parameters)
        self._channel: BlockingChannel = self._connection.channel()
        self._lock = threading.Lock()
        # Map ack_id (str) -> delivery_tag (int) for acknowledge
        self._pending_acks: dict[str, int] = {}

    def topic_path(self, project: str, topic: str) -> str:
        return topic

    def subscription_path(self, project: str, subscription: str) -> str:
        return subscription

    def publish(self, topic: str, data: bytes, attributes: Mapping[str, str]) -> "Future[str]":
        """
        Publish a message to a RabbitMQ queue or exchange.

        Args:
            topic: Queue name, or "exchange:routing_key" format
            data: Message data as bytes
            attributes: Sent as message headers

        Returns:
            Completed future with the generated message ID
        """
        exchange, routing_key = _split_topic(topic)
        message_id = uuid.uuid4().hex
        future: "Future[str]" = Future()
        try:
            with self._lock:
                self._channel.basic_publish(
                    exchange=exchange,
                    routing_key=routing_key,
                    body=data,
                    properties=pika.BasicProperties(
                        delivery_mode=2,  # Persistent
                        message_id=message_id,
                        timestamp=int(time.time()),
                        headers=dict(attributes),
                    ),
                )
        except Exception as e:
            future.set_exception(e)
        else:
            future.set_result(message_id)
        return future

    def stream_pull(
        self,
        subscription: str,
        callback: Callable[[RabbitMQDelivery], None],
        *,
        max_outstanding_messages: int,
    ) -> RabbitMQStreamingPull:
        return RabbitMQStreamingPull(self._parameters, subscription, callback, max_outstanding_messages)

    def pull(self, request: PullRequest, timeout: float) -> PullResponse:
        """
        Pull up to max_messages from a RabbitMQ queue.

        Args:
            request: PullRequest with subscription (queue name)
            timeout: Timeout in seconds (used as inactivity timeout)

        Returns:
            PullResponse with received messages
        """
        queue = request["subscription"]
        received_messages: list[ReceivedMessage] = []

        with self._lock:
            # Use consume() with inactivity_timeout for proper timeout behavior
            for method, properties, body in self._channel.consume(
                queue=queue,
                auto_ack=False,
                inactivity_timeout=timeout,
            ):
                if method is None:
                    # Timeout reached, no message available
                    break

                # Create ack_id from delivery_tag
                ack_id = str(method.delivery_tag)
                self._pending_acks[ack_id] = method.delivery_tag

                received_messages.append(
                    ReceivedMessage(
                        message=Message(
                            data=body,
                            message_id=getattr(properties, "message_id", None) or ack_id,
                            publish_time=_publish_time(properties),
                            attributes=_attributes(properties),
                        ),
                        ack_id=ack_id,
                    )
                )
                if len(received_messages) >= request["max_messages"]:
                    break

            # Cancel consumer to allow reuse; unacked deliveries stay pending
            self._channel.cancel()

        return PullResponse(received_messages=received_messages)

    def acknowledge(self, request: AcknowledgeRequest) -> None:
        """
        Acknowledge messages by their ack_ids.

        Args:
            request: AcknowledgeRequest with subscription and ack_ids
        """
        with self._lock:
            for ack_id in request["ack_ids"]:
                delivery_tag = self._pending_acks.pop(ack_id, None)
                if delivery_tag is not None:
                    self._channel.basic_ack(delivery_tag=delivery_tag)

    def list_topics(self, project: str) -> Iterable[Resource]:
        return _PassiveListing(self._connection, self._lock, self._topics)

    def list_subscriptions(self, project: str) -> Iterable[Resource]:
        return _PassiveListing(self._connection, self._lock, self._subscriptions)

    def close(self) -> None:
        if self._connection.is_open:
            self._connection.close()
