"""Google Cloud Pub/Sub adapter for the connector's transport protocol."""

from pubsub_connector.adapters.gcp.transport import GooglePubSubTransport

__all__ = ["GooglePubSubTransport"]
