"""Secret Manager Client - Imperative Shell.

Resolves `${secret:name}` and `${ENV_VAR}` placeholders found in
configuration, reading secrets from Google Cloud Secret Manager.
"""

import logging
import os
from dataclasses import dataclass

from google.cloud import secretmanager


logger = logging.getLogger(__name__)

SECRET_PREFIX = "secret:"


@dataclass
class SecretManagerConfig:
    """Configuration for Secret Manager client.

    Attributes:
        project_id: GCP project that owns the secrets
    """
    project_id: str


class SecretManagerClient:
    """Reads secrets such as the SMTP password.

    This is part of the imperative shell - it handles secret I/O.
    """

    def __init__(self, config: SecretManagerConfig) -> None:
        self.config = config
        self._client: secretmanager.SecretManagerServiceClient | None = None

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy initialization of Secret Manager client."""
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def get_secret(self, secret_name: str, version: str = "latest") -> str | None:
        """Fetch a secret value.

        Args:
            secret_name: Short secret name, not the full resource path
            version: Secret version

        Returns:
            Secret value, or None if it could not be read
        """
        name = f"projects/{self.config.project_id}/secrets/{secret_name}/versions/{version}"

        try:
            response = self.client.access_secret_version(request={"name": name})
        except Exception as e:
            logger.error("Failed to fetch secret %s: %s", secret_name, str(e))
            return None

        logger.info("Fetched secret %s", secret_name)
        return response.payload.data.decode("UTF-8")

    def resolve(self, value: str) -> str:
        """Expand a `${secret:name}` or `${ENV_VAR}` placeholder.

        Values that are not placeholders, or that cannot be resolved, are
        returned unchanged.
        """
        if not (value.startswith("${") and value.endswith("}")):
            return value

        name = value[2:-1]
        if name.startswith(SECRET_PREFIX):
            secret = self.get_secret(name[len(SECRET_PREFIX):])
            return secret if secret is not None else value

        env_value = os.environ.get(name)
        if env_value:
            return env_value

        logger.warning("Environment variable %s not set", name)
        return value
