"""Consumer that validates payloads and routes them to a handler."""

import logging
from typing import Mapping, Optional, Sequence, Type

from pydantic import BaseModel, ValidationError

from pubsub_connector.models.message import InboundMessage
from pubsub_connector.protocols.consumer import DeliveryContext, MessageHandler

logger = logging.getLogger(__name__)


class HandlerConsumer:
    """
    Generic MessageConsumer built from a request model and a handler.

    Responsibilities:
    - Skip messages whose attributes do not match (routing by message type)
    - Parse and validate JSON (using Pydantic)
    - Route to handler

    The handler is responsible for:
    - Domain processing logic
    - Publishing results
    """

    def __init__(
        self,
        handler: MessageHandler,
        request_model: Type[BaseModel],
        attributes: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize the handler consumer.

        Args:
            handler: Message handler implementing MessageHandler protocol
            request_model: Pydantic model for validating messages
            attributes: Attribute values a message must carry to be handled
        """
        self.handler = handler
        self.request_model = request_model
        self.attributes = dict(attributes or {})

    def matches(self, message: InboundMessage) -> bool:
        return all(message.attributes.get(k) == v for k, v in self.attributes.items())

    def consume(self, context: DeliveryContext, messages: Sequence[InboundMessage]) -> dict[str, bool]:
        verdicts: dict[str, bool] = {}
        for message in messages:
            if not self.matches(message):
                verdicts[message.message_id] = False
                continue

            # Validate message
            try:
                request = message.parse(self.request_model)
            except ValidationError as e:
                logger.warning("Invalid message payload: message_id=%s error=%s", message.message_id, e)
                verdicts[message.message_id] = False
                continue

            # Route to handler
            self.handler.handle(request)
            verdicts[message.message_id] = True
        return verdicts
