"""RabbitMQ adapter for the connector's transport protocol."""

from pubsub_connector.adapters.rabbitmq.transport import (
    RabbitMQDelivery,
    RabbitMQStreamingPull,
    RabbitMQTransport,
)

__all__ = ["RabbitMQDelivery", "RabbitMQStreamingPull", "RabbitMQTransport"]
