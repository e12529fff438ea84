"""Tests for Secret Manager placeholder resolution."""

import os
from unittest.mock import MagicMock, patch

from quakewatch.shell.secret_manager_client import SecretManagerClient, SecretManagerConfig


def make_client(secret_value: str | None = "s3cret") -> tuple[SecretManagerClient, MagicMock]:
    client = SecretManagerClient(SecretManagerConfig(project_id="my-project"))
    api = MagicMock()
    if secret_value is None:
        api.access_secret_version.side_effect = Exception("not found")
    else:
        api.access_secret_version.return_value.payload.data = secret_value.encode("UTF-8")
    client._client = api
    return client, api


class TestGetSecret:
    """Tests for SecretManagerClient.get_secret()."""

    def test_builds_resource_name(self):
        client, api = make_client()

        assert client.get_secret("email-password") == "s3cret"
        api.access_secret_version.assert_called_once_with(
            request={"name": "projects/my-project/secrets/email-password/versions/latest"}
        )

    def test_failure_returns_none(self):
        client, _ = make_client(None)
        assert client.get_secret("missing") is None


class TestResolve:
    """Tests for SecretManagerClient.resolve()."""

    def test_plain_value_unchanged(self):
        client, api = make_client()

        assert client.resolve("smtp.gmail.com") == "smtp.gmail.com"
        api.access_secret_version.assert_not_called()

    def test_secret_placeholder(self):
        client, _ = make_client()
        assert client.resolve("${secret:email-password}") == "s3cret"

    def test_unresolvable_secret_returns_placeholder(self):
        client, _ = make_client(None)
        assert client.resolve("${secret:missing}") == "${secret:missing}"

    def test_env_placeholder(self):
        client, _ = make_client()
        with patch.dict(os.environ, {"EMAIL_USER": "alerts@example.com"}):
            assert client.resolve("${EMAIL_USER}") == "alerts@example.com"

    def test_missing_env_returns_placeholder(self):
        client, _ = make_client()
        with patch.dict(os.environ, {}, clear=True):
            assert client.resolve("${NOT_SET}") == "${NOT_SET}"
