"""Tests for the HTTP entry point and config selection."""

import os
from unittest.mock import Mock, patch

import pytest

from quakewatch import main
from quakewatch.core.config import Config
from quakewatch.core.geo import BoundingBox
from quakewatch.shell.firestore_client import PersistError


@pytest.fixture
def mock_scheduler():
    scheduler = Mock()
    with patch.object(main, "_get_scheduler", return_value=scheduler):
        yield scheduler


class TestEarthquakeMonitor:
    """Tests for earthquake_monitor()."""

    def test_success(self, mock_scheduler):
        mock_scheduler.run_once.return_value = 12

        body, status = main.earthquake_monitor(Mock())

        assert status == 200
        assert body["status"] == "success"
        assert body["message"] == "USGS check completed"
        assert body["total_earthquakes"] == 12
        assert "timestamp" in body

    def test_error(self, mock_scheduler):
        mock_scheduler.run_once.side_effect = PersistError("count failed")

        body, status = main.earthquake_monitor(Mock())

        assert status == 500
        assert body["status"] == "error"
        assert "count failed" in body["message"]


class TestGetConfig:
    """Tests for _get_config()."""

    def test_uses_env_when_email_user_set(self):
        with patch.dict(os.environ, {"EMAIL_USER": "alerts@example.com"}, clear=True), \
                patch.object(main, "load_config_from_env", return_value=Config(smtp_username="alerts@example.com")) as from_env, \
                patch.object(main, "load_config") as from_file:
            config = main._get_config()

        from_env.assert_called_once()
        from_file.assert_not_called()
        assert config.smtp_username == "alerts@example.com"

    def test_config_path_wins(self):
        with patch.dict(os.environ, {"CONFIG_PATH": "x.yaml", "EMAIL_USER": "a@example.com"}, clear=True), \
                patch.object(main, "load_config", return_value=Config(smtp_username="a@example.com")) as from_file:
            main._get_config()

        from_file.assert_called_once_with("x.yaml")

    def test_invalid_config_raises(self):
        bad = Config(region=BoundingBox(30.0, 20.0, 86.0, 95.0))
        with patch.dict(os.environ, {}, clear=True), \
                patch.object(main, "load_config", return_value=bad):
            with pytest.raises(ValueError, match="Invalid configuration"):
                main._get_config()


class TestApiEntryPoints:
    """The web API functions hand the shared store and directory to api_handler."""

    @pytest.fixture
    def stores(self):
        event_store, directory = Mock(), Mock()
        with patch.object(main, "_get_stores", return_value=(event_store, directory)):
            yield event_store, directory

    def test_latest(self, stores):
        event_store, _ = stores
        request = Mock()
        with patch.object(main.api_handler, "get_latest") as handler:
            main.earthquake_latest(request)

        handler.assert_called_once_with(request, event_store)

    def test_stats(self, stores):
        event_store, directory = stores
        request = Mock()
        with patch.object(main.api_handler, "get_stats") as handler:
            main.earthquake_stats(request)

        handler.assert_called_once_with(request, event_store, directory)

    def test_subscribe(self, stores):
        _, directory = stores
        request = Mock()
        with patch.object(main.api_handler, "subscribe") as handler:
            main.subscribe(request)

        handler.assert_called_once_with(request, directory)

    def test_get_stores_built_once(self):
        with patch.object(main, "_stores", None), \
                patch.object(main, "_get_config", return_value=Config()) as get_config:
            first = main._get_stores()
            second = main._get_stores()

        assert first is second
        get_config.assert_called_once()
