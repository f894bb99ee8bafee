"""Pub/Sub connector: publish, stream, fan out to consumers and settle."""

from pubsub_connector.config import BrokerConfig, ServiceAccountCredential, load_config
from pubsub_connector.connector import PubSubConnector
from pubsub_connector.exceptions import (
    BrokerConnectionError,
    ConfigurationError,
    CredentialProvisioningError,
    PublishError,
    PubSubConnectorError,
    ReceiveError,
    SerializationError,
)
from pubsub_connector.models.message import AckMode, DeliveryOutcome, InboundMessage
from pubsub_connector.protocols.consumer import DeliveryContext, MessageConsumer

__all__ = [
    "AckMode",
    "BrokerConfig",
    "BrokerConnectionError",
    "ConfigurationError",
    "CredentialProvisioningError",
    "DeliveryContext",
    "DeliveryOutcome",
    "InboundMessage",
    "MessageConsumer",
    "PubSubConnector",
    "PubSubConnectorError",
    "PublishError",
    "ReceiveError",
    "SerializationError",
    "ServiceAccountCredential",
    "load_config",
]
