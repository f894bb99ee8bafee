"""
Credential provisioning.

Resolves the broker credentials to a usable key file, materializing one from
inline service-account data when no file exists yet.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pubsub_connector.config import BrokerConfig, ServiceAccountCredential
from pubsub_connector.exceptions import ConfigurationError, CredentialProvisioningError

logger = logging.getLogger(__name__)

FILE_MODE = 0o600
DIR_MODE = 0o700


def normalize_credential(credential: ServiceAccountCredential, project_id: str) -> ServiceAccountCredential:
    """Return a copy with the project id injected and escaped key newlines restored."""
    private_key = credential.private_key
    if private_key is not None:
        private_key = private_key.replace("\\n", "\n")
    return credential.model_copy(update={"project_id": project_id, "private_key": private_key})


def temp_credentials_path(project_id: str, temp_dir: Optional[Path] = None) -> Path:
    """
    Per-project location used when no credentials path is configured.

    Raises:
        ConfigurationError: the project id contains a path separator
    """
    if "/" in project_id or "\\" in project_id:
        raise ConfigurationError(f"invalid project_id for a credentials file name: {project_id!r}")
    base = Path(temp_dir) if temp_dir is not None else Path(tempfile.gettempdir())
    return base / f"pubsub-credentials-{project_id}.json"


def write_credentials_file(credential: ServiceAccountCredential, path: Path) -> None:
    """Serialize credentials as indented JSON readable only by the owner."""
    try:
        payload = json.dumps(credential.model_dump(mode="json", exclude_none=True), indent=2)
    except (TypeError, ValueError) as e:
        raise CredentialProvisioningError(f"failed to marshal credentials: {e}") from e

    try:
        path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    except OSError as e:
        raise CredentialProvisioningError(f"failed to create credentials directory: {e}") from e

    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        # os.open only applies the mode to newly created files
        os.chmod(path, FILE_MODE)
    except OSError as e:
        raise CredentialProvisioningError(f"failed to write credentials file: {e}") from e


def provision_credentials(config: BrokerConfig, temp_dir: Optional[Path] = None) -> Path:
    """
    Resolve the credentials file the broker client should authenticate with.

    Args:
        config: Connector configuration
        temp_dir: Directory for generated files when no credentials path is
            configured (defaults to the system temp dir)

    Returns:
        Path to an existing credentials file

    Raises:
        ConfigurationError: project id is empty, or there is neither an
            existing file nor inline credentials
        CredentialProvisioningError: the file could not be written
    """
    project_id = (config.project_id or "").strip()
    if not project_id:
        raise ConfigurationError("PubSub config project_id cannot be empty")

    if config.credentials_path:
        path = Path(config.credentials_path).expanduser()
        if path.exists():
            return path
        if config.credentials is None:
            raise ConfigurationError(
                f"credentials file not found at {path} and no credentials data provided in config"
            )
        write_credentials_file(normalize_credential(config.credentials, project_id), path)
        logger.info("Created credentials file from config: path=%s", path)
        return path

    if config.credentials is not None:
        path = temp_credentials_path(project_id, temp_dir)
        write_credentials_file(normalize_credential(config.credentials, project_id), path)
        logger.info("Created temporary credentials file from config: path=%s", path)
        return path

    raise ConfigurationError(
        "no credentials provided: either credentials_path or credentials must be specified"
    )
