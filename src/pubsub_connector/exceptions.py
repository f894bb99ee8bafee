"""Exception hierarchy raised by the connector."""


class PubSubConnectorError(Exception):
    """Base class for every error raised by the connector."""

    error_type = "connector_error"


class ConfigurationError(PubSubConnectorError):
    """Missing project id, missing credentials, or no consumers registered."""

    error_type = "configuration_error"


class CredentialProvisioningError(PubSubConnectorError):
    """A credentials file could not be materialized on disk."""

    error_type = "credential_provisioning_error"


class BrokerConnectionError(PubSubConnectorError):
    """The authenticated broker handle could not be created."""

    error_type = "connection_error"


class PublishError(PubSubConnectorError):
    """The broker rejected a publish or failed to confirm it."""

    error_type = "publish_error"


class SerializationError(PubSubConnectorError):
    """A payload could not be converted to its wire form."""

    error_type = "serialization_error"


class ReceiveError(PubSubConnectorError):
    """The streaming pull terminated abnormally."""

    error_type = "receive_error"
