"""Streaming delivery of inbound messages to every registered consumer."""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from pubsub_connector.connection import BrokerConnection
from pubsub_connector.consumer.registry import ReceiverRegistry
from pubsub_connector.exceptions import ConfigurationError, ReceiveError
from pubsub_connector.models.base import CamelCaseModel
from pubsub_connector.models.error import ErrorInfo
from pubsub_connector.models.message import AckMode, CoordinatorState, DeliveryOutcome, InboundMessage
from pubsub_connector.protocols.consumer import DeliveryContext, MessageConsumer
from pubsub_connector.protocols.transport import DeliveredMessage, StreamingPull

logger = logging.getLogger(__name__)


class CoordinatorStatus(CamelCaseModel):
    """Point-in-time view of the coordinator."""

    state: CoordinatorState
    subscription: str
    consumers: int
    in_flight: int
    last_error: Optional[ErrorInfo] = None


class DeliveryCoordinator:
    """
    Fans each inbound message out to all consumers and settles it once.

    Responsibilities:
    - Run one streaming pull per subscription in the background
    - Call every registered consumer, in registration order, for each message
    - Ack when the first consumer accepts the message, nack when none does

    Consumers are responsible for:
    - Domain processing logic
    - Their own synchronization (one consumer may see two messages at once)
    """

    def __init__(
        self,
        connection: BrokerConnection,
        subscription: str,
        registry: Optional[ReceiverRegistry] = None,
        ack_mode: AckMode = AckMode.DEFERRED,
        max_outstanding_messages: int = 1000,
    ):
        """
        Initialize the delivery coordinator.

        Args:
            connection: Broker connection to borrow the transport from
            subscription: Subscription name or full path
            registry: Consumer registry (a new empty one by default)
            ack_mode: DEFERRED acks after a consumer accepts; IMMEDIATE acks
                on receipt and only nacks afterwards
            max_outstanding_messages: Flow control bound on in-flight messages
        """
        self.connection = connection
        self.subscription = subscription
        self.registry = registry if registry is not None else ReceiverRegistry()
        self.ack_mode = AckMode(ack_mode)
        self.max_outstanding_messages = max_outstanding_messages
        self._state = CoordinatorState.IDLE
        self._stream: Optional[StreamingPull] = None
        self._watcher: Optional[threading.Thread] = None
        self._cancelled = threading.Event()
        self._last_error: Optional[ErrorInfo] = None
        self._lock = threading.Lock()
        self._in_flight = 0
        self._idle = threading.Condition()

    @property
    def state(self) -> CoordinatorState:
        return self._state

    def register(self, consumer: MessageConsumer) -> None:
        self.registry.register(consumer)

    def status(self) -> CoordinatorStatus:
        with self._idle:
            in_flight = self._in_flight
        return CoordinatorStatus(
            state=self._state,
            subscription=self.subscription,
            consumers=len(self.registry),
            in_flight=in_flight,
            last_error=self._last_error,
        )

    def start(self) -> None:
        """
        Start the background receive loop and return immediately.

        Raises:
            ConfigurationError: no consumers are registered, or the loop is
                already running
            ReceiveError: the transport refused to open the stream
        """
        with self._lock:
            if self._state is CoordinatorState.RECEIVING:
                raise ConfigurationError(f"already receiving from {self.subscription}")
            if not len(self.registry):
                logger.error("PubSub has no Receiver to process incoming messages")
                raise ConfigurationError("no consumers registered")

            transport = self.connection.transport
            path = transport.subscription_path(self.connection.project_id, self.subscription)
            self._cancelled = threading.Event()
            try:
                stream = transport.stream_pull(
                    path,
                    self._on_message,
                    max_outstanding_messages=self.max_outstanding_messages,
                )
            except Exception as e:
                raise ReceiveError(f"failed to open streaming pull on {path}: {e}") from e

            self._stream = stream
            self._state = CoordinatorState.RECEIVING
            self._watcher = threading.Thread(
                target=self._watch, args=(stream, path), name=f"pubsub-receive-{self.subscription}", daemon=True
            )
            self._watcher.start()
        logger.info("Receiving messages: subscription=%s consumers=%d", path, len(self.registry))

    def _watch(self, stream: StreamingPull, path: str) -> None:
        try:
            stream.result()
        except Exception as e:
            error = ReceiveError(f"streaming pull on {path} terminated: {e}")
            error.__cause__ = e
            logger.error("Error receiving messages: subscription=%s error=%s", path, e)
            self._last_error = ErrorInfo.from_exception(error, resource=path)
        else:
            logger.info("Stopped receiving messages: subscription=%s", path)
        finally:
            with self._lock:
                if self._stream is stream:
                    self._stream = None
                    self._state = CoordinatorState.IDLE

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Cancel the receive loop and wait for in-flight dispatches.

        Args:
            timeout: Seconds to wait in total; None waits indefinitely

        Returns:
            True if every in-flight dispatch finished within the timeout
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            stream, watcher = self._stream, self._watcher
            self._cancelled.set()
        if stream is not None:
            stream.cancel()
        if watcher is not None and watcher is not threading.current_thread():
            watcher.join(self._remaining(deadline))
        return self.wait_idle(self._remaining(deadline))

    @staticmethod
    def _remaining(deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        return max(0.0, deadline - time.monotonic())

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no dispatch is in flight; False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: self._in_flight == 0, timeout)

    @contextmanager
    def _tracked(self) -> Iterator[None]:
        with self._idle:
            self._in_flight += 1
        try:
            yield
        finally:
            with self._idle:
                self._in_flight -= 1
                if self._in_flight == 0:
                    self._idle.notify_all()

    def _on_message(self, received: DeliveredMessage) -> None:
        with self._tracked():
            self.dispatch(received)

    def dispatch(self, received: DeliveredMessage) -> DeliveryOutcome:
        """
        Deliver one broker message to every consumer and settle it.

        The first consumer that returns a mapping with the message ID set to
        True wins. Anything else, including a non-mapping result, counts as
        not handled. Later consumers are still called.
        """
        if self.ack_mode is AckMode.IMMEDIATE:
            received.ack()

        message = InboundMessage.from_received(received)
        context = DeliveryContext(subscription=self.subscription, cancelled=self._cancelled)

        accepted = False
        for consumer in self.registry.snapshot():
            try:
                verdicts = consumer.consume(context, [message])
                handled = verdicts.get(message.message_id) is True
            except Exception:
                logger.warning(
                    "Consumer %s failed on message: message_id=%s",
                    type(consumer).__name__,
                    message.message_id,
                    exc_info=True,
                )
                continue
            if handled:
                accepted = True

        if accepted:
            if self.ack_mode is AckMode.DEFERRED:
                received.ack()
            logger.debug("Message processed and acknowledged: message_id=%s", message.message_id)
            return DeliveryOutcome.ACKED

        received.nack()
        logger.debug("Message not processed and not acknowledged: message_id=%s", message.message_id)
        return DeliveryOutcome.NACKED
