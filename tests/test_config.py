"""Tests for configuration models and loading."""

import pytest
from pydantic import ValidationError

from pubsub_connector.config import BrokerConfig, load_config
from pubsub_connector.exceptions import ConfigurationError, PubSubConnectorError
from pubsub_connector.models.message import AckMode


class TestBrokerConfig:
    """Test BrokerConfig validation."""

    def test_defaults(self):
        """Optional settings fall back to their defaults."""
        config = BrokerConfig(project_id="proj-1", credentials_path="/tmp/creds.json")

        assert config.topic == ""
        assert config.subscription == ""
        assert config.credentials is None
        assert config.max_outstanding_messages == 1000
        assert config.ack_mode is AckMode.DEFERRED
        assert config.shutdown_timeout == 30.0

    def test_empty_project_id_rejected(self):
        """A blank project id fails construction with ConfigurationError."""
        with pytest.raises(ConfigurationError):
            BrokerConfig(project_id="  ", credentials_path="/tmp/creds.json")

    def test_missing_credentials_rejected(self):
        """At least one credential source is required."""
        with pytest.raises(ConfigurationError):
            BrokerConfig(project_id="proj-1")

    def test_missing_credentials_is_a_connector_error(self):
        """Callers catching PubSubConnectorError see configuration failures."""
        with pytest.raises(PubSubConnectorError):
            BrokerConfig(project_id="proj-1")

    def test_inline_credentials_alone_are_enough(self):
        """Inline credentials satisfy the credential requirement."""
        config = BrokerConfig(project_id="proj-1", credentials={"private_key": "k"})

        assert config.credentials.private_key == "k"

    def test_accepts_camel_case_keys(self):
        """camelCase keys populate snake_case fields."""
        config = BrokerConfig.model_validate(
            {"projectId": "proj-1", "credentialsPath": "/tmp/c.json", "ackMode": "immediate"}
        )

        assert config.project_id == "proj-1"
        assert config.credentials_path == "/tmp/c.json"
        assert config.ack_mode is AckMode.IMMEDIATE

    def test_credentials_keep_extra_fields(self):
        """Unknown service account fields survive validation."""
        config = BrokerConfig(
            project_id="proj-1", credentials={"private_key": "k", "custom_field": "x"}
        )

        assert config.credentials.model_dump()["custom_field"] == "x"

    def test_unknown_keys_rejected(self):
        """A misspelt setting fails validation."""
        with pytest.raises(ValidationError):
            BrokerConfig(project_id="proj-1", credentials_path="/tmp/c.json", subscripton="orders-sub")


class TestLoadConfig:
    """Test load_config."""

    def test_load_from_mapping(self):
        """A mapping is validated into a BrokerConfig."""
        config = load_config(
            {"project_id": "proj-1", "topic": "orders", "credentials_path": "/tmp/c.json"}
        )

        assert config.topic == "orders"

    def test_load_from_yaml_file(self, tmp_path):
        """A YAML file is parsed and validated."""
        path = tmp_path / "pubsub.yaml"
        path.write_text(
            "project_id: proj-1\n"
            "topic: orders\n"
            "subscription: orders-sub\n"
            "credentials:\n"
            "  private_key: \"line1\\\\nline2\"\n"
            "  client_email: svc@proj-1.iam.gserviceaccount.com\n"
        )

        config = load_config(path)

        assert config.subscription == "orders-sub"
        assert config.credentials.private_key == "line1\\nline2"

    def test_missing_file_raises_configuration_error(self, tmp_path):
        """A missing config file raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "missing.yaml")

    def test_malformed_yaml_raises_configuration_error(self, tmp_path):
        """Unparseable YAML raises ConfigurationError."""
        path = tmp_path / "bad.yaml"
        path.write_text("project_id: [unclosed\n")

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_invalid_settings_raise_configuration_error(self):
        """Validation failures surface as ConfigurationError."""
        with pytest.raises(ConfigurationError):
            load_config({"project_id": "proj-1"})

    def test_non_mapping_document_raises_configuration_error(self, tmp_path):
        """A YAML document that is not a mapping is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError):
            load_config(path)
