"""
Connector configuration.

Settings are described by Pydantic models and can be loaded from a mapping or
a YAML file. Keys are accepted in snake_case or camelCase.
"""

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from pubsub_connector.exceptions import ConfigurationError
from pubsub_connector.models.base import CamelCaseModel
from pubsub_connector.models.message import AckMode

logger = logging.getLogger(__name__)


class ServiceAccountCredential(BaseModel):
    """Service account key material, laid out like a Google key file."""

    model_config = ConfigDict(extra="allow")

    type: Optional[str] = "service_account"
    project_id: Optional[str] = None
    private_key_id: Optional[str] = None
    private_key: Optional[str] = None
    client_email: Optional[str] = None
    client_id: Optional[str] = None
    auth_uri: Optional[str] = None
    token_uri: Optional[str] = None
    auth_provider_x509_cert_url: Optional[str] = None
    client_x509_cert_url: Optional[str] = None
    universe_domain: Optional[str] = None


class BrokerConfig(CamelCaseModel):
    """Settings for one connector bound to a project, topic and subscription."""

    project_id: str
    topic: str = ""
    subscription: str = ""
    credentials_path: Optional[str] = None
    credentials: Optional[ServiceAccountCredential] = None
    max_outstanding_messages: int = Field(default=1000, gt=0)
    ack_mode: AckMode = AckMode.DEFERRED
    shutdown_timeout: float = Field(default=30.0, ge=0)

    @model_validator(mode="after")
    def _check_required(self) -> "BrokerConfig":
        # pydantic only wraps ValueError and AssertionError; these propagate as-is
        if not self.project_id.strip():
            raise ConfigurationError("PubSub config project_id cannot be empty")
        if not self.credentials_path and self.credentials is None:
            raise ConfigurationError(
                "no credentials provided: either credentials_path or credentials must be specified"
            )
        return self


def load_config(source: Union[str, Path, Mapping[str, Any]]) -> BrokerConfig:
    """
    Build a BrokerConfig from a mapping or a YAML file path.

    Raises:
        ConfigurationError: if the file is missing or unreadable, or the
            settings fail validation.
    """
    if isinstance(source, Mapping):
        data: Any = source
    else:
        path = Path(source)
        if not path.exists():
            raise ConfigurationError(f"config file not found at {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"failed to parse config file {path}: {e}") from e
        logger.info("Loaded configuration from %s", path)

    if not isinstance(data, Mapping):
        raise ConfigurationError("configuration must be a mapping")

    try:
        return BrokerConfig.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigurationError(f"invalid PubSub configuration: {e}") from e
