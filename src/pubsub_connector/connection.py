"""Shared broker connection owned by a connector for its whole lifetime."""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Union

from pubsub_connector.config import BrokerConfig
from pubsub_connector.exceptions import BrokerConnectionError
from pubsub_connector.protocols.transport import BrokerTransport

logger = logging.getLogger(__name__)

TransportFactory = Callable[[BrokerConfig, Path], BrokerTransport]


def google_transport_factory(config: BrokerConfig, credentials_path: Path) -> BrokerTransport:
    """Build the Google Cloud Pub/Sub transport from a service account key file."""
    # Imported lazily so RabbitMQ-only deployments need not load the Google clients
    from pubsub_connector.adapters.gcp import GooglePubSubTransport

    return GooglePubSubTransport.from_service_account_file(str(credentials_path))


class BrokerConnection:
    """
    Single authenticated handle to the broker.

    Publisher, inspector and coordinator borrow the transport without taking
    ownership; only ``disconnect()`` releases it.
    """

    def __init__(self, transport: BrokerTransport, project_id: str):
        self._transport: Optional[BrokerTransport] = transport
        self.project_id = project_id
        self._lock = threading.Lock()

    @property
    def transport(self) -> BrokerTransport:
        """The live transport; raises once the connection is closed."""
        transport = self._transport
        if transport is None:
            raise BrokerConnectionError("PubSub connection is closed")
        return transport

    @property
    def closed(self) -> bool:
        return self._transport is None

    def disconnect(self) -> None:
        """Release the broker handle. Safe to call repeatedly; never raises."""
        with self._lock:
            transport, self._transport = self._transport, None
        if transport is None:
            return
        try:
            transport.close()
        except Exception:
            logger.warning("Error while closing PubSub connection", exc_info=True)
        else:
            logger.info("PubSub connection closed: project=%s", self.project_id)


def connect(
    config: BrokerConfig,
    credentials_path: Union[str, Path],
    transport_factory: Optional[TransportFactory] = None,
) -> BrokerConnection:
    """
    Open the broker connection.

    No topic or subscription I/O happens here; only the authenticated
    clients are created.

    Raises:
        BrokerConnectionError: the transport could not be created
    """
    factory = transport_factory or google_transport_factory
    try:
        transport = factory(config, Path(credentials_path))
    except Exception as e:
        raise BrokerConnectionError(f"failed to create PubSub client: {e}") from e
    logger.info("PubSub connection opened: project=%s", config.project_id)
    return BrokerConnection(transport, config.project_id)
