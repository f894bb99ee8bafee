"""Publishing messages to the configured topic."""

import asyncio
import json
import logging
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel

from pubsub_connector.connection import BrokerConnection
from pubsub_connector.exceptions import PublishError, SerializationError
from pubsub_connector.models.publish import BatchPublishResult, PublishOutcome

logger = logging.getLogger(__name__)


def serialize_payload(message: Any) -> bytes:
    """
    Convert an outbound payload to bytes.

    Strings are UTF-8 encoded and bytes pass through. Pydantic models use
    their JSON dump; anything else becomes compact JSON with sorted keys.

    Raises:
        SerializationError: the value has no JSON representation
    """
    if isinstance(message, bytes):
        return message
    if isinstance(message, str):
        return message.encode("utf-8")
    try:
        if isinstance(message, BaseModel):
            return message.model_dump_json().encode("utf-8")
        return json.dumps(message, separators=(",", ":"), sort_keys=True, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(f"failed to serialize message: {e}") from e


class MessagePublisher:
    """
    Synchronous publisher bound to one topic.

    Each publish blocks until the broker returns the message ID, so a caller
    never sees a message as sent before the broker has accepted it.
    """

    def __init__(self, connection: BrokerConnection, topic: str):
        self.connection = connection
        self.topic = topic

    def _submit(self, data: bytes, attributes: Optional[Mapping[str, str]]):
        transport = self.connection.transport
        topic = transport.topic_path(self.connection.project_id, self.topic)
        try:
            return transport.publish(topic, data, dict(attributes or {}))
        except Exception as e:
            raise PublishError(f"failed to publish message: {e}") from e

    def publish(self, message: Any, attributes: Optional[Mapping[str, str]] = None) -> str:
        """Serialize and publish any payload; see ``serialize_payload``."""
        return self.publish_message(serialize_payload(message), attributes)

    def publish_message(self, data: bytes, attributes: Optional[Mapping[str, str]] = None) -> str:
        """
        Publish raw bytes to the topic.

        Args:
            data: Message data as bytes
            attributes: Optional message attributes

        Returns:
            Broker-assigned message ID

        Raises:
            PublishError: the broker rejected or did not confirm the message
        """
        future = self._submit(data, attributes)
        # Block until the result is returned and a server-generated
        # ID is returned for the published message.
        try:
            message_id = future.result()
        except Exception as e:
            raise PublishError(f"failed to publish message: {e}") from e

        logger.debug("PubSub Publish: message_id=%s", message_id)
        return message_id

    def publish_all(
        self, messages: Iterable[bytes], attributes: Optional[Mapping[str, str]] = None
    ) -> BatchPublishResult:
        """
        Publish payloads one after another with the same attributes.

        A failed item is recorded and the remaining items are still published.
        """
        result = BatchPublishResult()
        for index, data in enumerate(messages):
            try:
                message_id = self.publish_message(data, attributes)
            except PublishError as e:
                logger.warning("Batch publish item %d failed: %s", index, e)
                result.outcomes.append(PublishOutcome(index=index, error=e))
            else:
                result.outcomes.append(PublishOutcome(index=index, message_id=message_id))
        return result


class AsyncMessagePublisher(MessagePublisher):
    """Publisher whose operations await the broker without blocking the event loop."""

    async def publish(self, message: Any, attributes: Optional[Mapping[str, str]] = None) -> str:
        return await self.publish_message(serialize_payload(message), attributes)

    async def publish_message(self, data: bytes, attributes: Optional[Mapping[str, str]] = None) -> str:
        future = self._submit(data, attributes)
        try:
            message_id = await asyncio.wrap_future(future)
        except Exception as e:
            raise PublishError(f"failed to publish message: {e}") from e

        logger.debug("PubSub Publish: message_id=%s", message_id)
        return message_id

    async def publish_all(
        self, messages: Iterable[bytes], attributes: Optional[Mapping[str, str]] = None
    ) -> BatchPublishResult:
        result = BatchPublishResult()
        for index, data in enumerate(messages):
            try:
                message_id = await self.publish_message(data, attributes)
            except PublishError as e:
                logger.warning("Batch publish item %d failed: %s", index, e)
                result.outcomes.append(PublishOutcome(index=index, error=e))
            else:
                result.outcomes.append(PublishOutcome(index=index, message_id=message_id))
        return result
