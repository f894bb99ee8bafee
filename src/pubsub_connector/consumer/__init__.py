"""Inbound message consumption: registry, coordinator and pull helpers."""

from pubsub_connector.consumer.delivery_coordinator import DeliveryCoordinator
from pubsub_connector.consumer.handler_consumer import HandlerConsumer
from pubsub_connector.consumer.message_puller import MessagePuller
from pubsub_connector.consumer.registry import ReceiverRegistry

__all__ = ["DeliveryCoordinator", "HandlerConsumer", "MessagePuller", "ReceiverRegistry"]
