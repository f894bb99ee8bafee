"""
Connector facade.

Ties configuration, credentials, the broker connection, publishing,
existence checks and delivery together behind the lifecycle a hosting
process drives: install, connect, disconnect, uninstall.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from pubsub_connector.config import BrokerConfig
from pubsub_connector.connection import BrokerConnection, TransportFactory, connect
from pubsub_connector.consumer.delivery_coordinator import CoordinatorStatus, DeliveryCoordinator
from pubsub_connector.consumer.message_puller import MessagePuller
from pubsub_connector.credentials import provision_credentials
from pubsub_connector.inspector import TopicInspector
from pubsub_connector.models.message import InboundMessage
from pubsub_connector.models.publish import BatchPublishResult
from pubsub_connector.protocols.consumer import MessageConsumer
from pubsub_connector.publisher import MessagePublisher

logger = logging.getLogger(__name__)


class PubSubConnector:
    """Shared Pub/Sub connection plus the operations built on it."""

    def __init__(self, config: BrokerConfig, connection: BrokerConnection):
        self.config = config
        self.connection = connection
        self.publisher = MessagePublisher(connection, config.topic)
        self.inspector = TopicInspector(connection, config.topic, config.subscription)
        self.coordinator = DeliveryCoordinator(
            connection,
            config.subscription,
            ack_mode=config.ack_mode,
            max_outstanding_messages=config.max_outstanding_messages,
        )
        self.puller = MessagePuller(connection, config.subscription)

    @classmethod
    def from_config(
        cls,
        config: BrokerConfig,
        transport_factory: Optional[TransportFactory] = None,
        temp_dir: Optional[Path] = None,
    ) -> "PubSubConnector":
        """
        Provision credentials and open the broker connection.

        Raises:
            ConfigurationError: project id or credentials missing
            CredentialProvisioningError: the credentials file could not be written
            BrokerConnectionError: the broker client could not be created
        """
        credentials_path = provision_credentials(config, temp_dir=temp_dir)
        connection = connect(config, credentials_path, transport_factory)
        connector = cls(config, connection)
        connector.install()
        return connector

    # Lifecycle. Nothing touches the network until a publish or receive.

    def install(self) -> None:
        pass

    def connect(self) -> None:
        pass

    def disconnect(self) -> None:
        """Stop receiving, wait up to shutdown_timeout for dispatches, release the connection."""
        if self.connection.closed:
            return
        try:
            drained = self.coordinator.stop(timeout=self.config.shutdown_timeout)
            if not drained:
                logger.warning(
                    "Disconnecting with messages still in flight after %.1fs",
                    self.config.shutdown_timeout,
                )
        finally:
            self.connection.disconnect()

    def uninstall(self) -> None:
        pass

    # Publishing

    def publish(self, message: Any, attributes: Optional[Mapping[str, str]] = None) -> str:
        return self.publisher.publish(message, attributes)

    def publish_message(self, data: bytes, attributes: Optional[Mapping[str, str]] = None) -> str:
        return self.publisher.publish_message(data, attributes)

    def publish_messages(
        self, messages: Iterable[bytes], attributes: Optional[Mapping[str, str]] = None
    ) -> BatchPublishResult:
        return self.publisher.publish_all(messages, attributes)

    # Receiving

    def register_receiver(self, consumer: MessageConsumer) -> None:
        self.coordinator.register(consumer)

    def start_receiving(self) -> None:
        self.coordinator.start()

    def stop_receiving(self, timeout: Optional[float] = None) -> bool:
        return self.coordinator.stop(timeout)

    def receiving_status(self) -> CoordinatorStatus:
        return self.coordinator.status()

    def pull_messages(self, max_messages: int = 1, timeout: float = 30) -> list[InboundMessage]:
        return self.puller.pull(max_messages, timeout)

    # Inspection

    def topic_exists(self) -> bool:
        return self.inspector.topic_exists()

    def subscription_exists(self) -> bool:
        return self.inspector.subscription_exists()

    def get_topic_info(self) -> Optional[Any]:
        return self.inspector.get_topic_info()

    def get_subscription_info(self) -> Optional[Any]:
        return self.inspector.get_subscription_info()

    def list_subscriptions(self) -> list[Any]:
        return self.inspector.list_subscriptions()
