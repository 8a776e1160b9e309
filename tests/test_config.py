"""Tests for settings loading and outbound host checks."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from content_sync.config import SyncSettings, get_app_secret, is_external_host, is_safe_download_url, load_settings
from content_sync.exceptions import ConfigurationError
from content_sync.utils import PassError


@pytest.mark.unit
class TestLoadSettings:
    def test_source_settings_from_environment(self) -> None:
        environ = {
            "CONTENT_SYNC_MODE": "source",
            "CONTENT_SYNC_DESTINATION_URL": "https://dest.example/",
            "CONTENT_SYNC_USERNAME": "admin",
            "CONTENT_SYNC_APP_PASSWORD": "secret",
        }

        settings = load_settings(environ)

        assert settings.mode == "source"
        assert settings.destination_url == "https://dest.example"
        assert settings.username == "admin"
        assert settings.app_secret == "secret"
        assert settings.allow_local_sync is False
        assert settings.sync_endpoint == "https://dest.example/wp-json/content-sync/v1/sync"

    def test_mode_defaults_to_source(self) -> None:
        assert load_settings({"CONTENT_SYNC_APP_PASSWORD": "x"}).mode == "source"

    @patch("content_sync.config.utils.get_pass_value")
    def test_destination_mode_does_not_look_up_secret(self, mock_pass) -> None:
        settings = load_settings({"CONTENT_SYNC_MODE": "Destination", "CONTENT_SYNC_ALLOW_LOCAL_SYNC": "1"})

        assert settings.mode == "destination"
        assert settings.allow_local_sync is True
        assert settings.app_secret == ""
        mock_pass.assert_not_called()

    def test_invalid_mode_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid sync settings"):
            load_settings({"CONTENT_SYNC_MODE": "both", "CONTENT_SYNC_APP_PASSWORD": "x"})

    def test_invalid_destination_url_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            load_settings({"CONTENT_SYNC_DESTINATION_URL": "ftp://dest.example", "CONTENT_SYNC_APP_PASSWORD": "x"})

    def test_secret_is_not_in_repr(self) -> None:
        assert "hunter2" not in repr(SyncSettings(app_secret="hunter2"))


@pytest.mark.unit
class TestGetAppSecret:
    @patch("content_sync.config.utils.get_pass_value")
    def test_pass_path_takes_precedence(self, mock_pass) -> None:
        mock_pass.return_value = "from-pass"

        secret = get_app_secret("custom/path", {"CONTENT_SYNC_APP_PASSWORD": "from-env"})

        assert secret == "from-pass"
        mock_pass.assert_called_once_with("custom/path")

    @patch("content_sync.config.utils.get_pass_value")
    def test_env_var_before_default_pass_path(self, mock_pass) -> None:
        assert get_app_secret(None, {"CONTENT_SYNC_APP_PASSWORD": "from-env"}) == "from-env"
        mock_pass.assert_not_called()

    @patch("content_sync.config.utils.get_pass_value")
    def test_default_pass_path(self, mock_pass) -> None:
        mock_pass.return_value = "from-default"

        assert get_app_secret(None, {}) == "from-default"
        mock_pass.assert_called_once_with("content-sync/app_password")

    @patch("content_sync.config.utils.get_pass_value")
    def test_nothing_found(self, mock_pass) -> None:
        mock_pass.side_effect = PassError("not found")

        assert get_app_secret(None, {}) is None


@pytest.mark.unit
class TestExternalHosts:
    @pytest.mark.parametrize(
        ("host", "expected"),
        [
            ("src.example", True),
            ("93.184.216.34", True),
            ("localhost", False),
            ("127.0.0.1", False),
            ("10.1.2.3", False),
            ("192.168.0.10", False),
            ("[::1]", False),
            ("site.local", False),
            ("site.test", False),
            ("", False),
        ],
    )
    def test_is_external_host(self, host: str, expected: bool) -> None:
        assert is_external_host(host) is expected

    @pytest.mark.parametrize("host", ["site.local", "SITE.TEST", "site.test."])
    def test_local_sync_allows_local_and_test_hosts(self, host: str) -> None:
        assert is_external_host(host, allow_local_sync=True) is True

    def test_local_sync_does_not_allow_loopback(self) -> None:
        assert is_external_host("127.0.0.1", allow_local_sync=True) is False

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://src.example/a.png", True),
            ("http://src.example/a.png", True),
            ("ftp://src.example/a.png", False),
            ("file:///etc/passwd", False),
            ("https://localhost/a.png", False),
            ("not a url", False),
        ],
    )
    def test_is_safe_download_url(self, url: str, expected: bool) -> None:
        assert is_safe_download_url(url) is expected
