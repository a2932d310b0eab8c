"""Tests for environment settings and the settings cache."""

from __future__ import annotations

import os

from unittest.mock import patch

import pytest

from pydantic import ValidationError

from emcy_agent.core.constants import (
    DEFAULT_AGENT_SERVICE_URL,
    DEFAULT_READ_TIMEOUT,
    Settings,
    clear_settings_cache,
    get_settings,
    reload_settings,
)


class TestSettings:
    """Tests for Settings validation."""

    def test_defaults(self) -> None:
        """Test defaults when nothing is configured."""
        settings = Settings(api_key=None, agent_id=None)

        assert settings.agent_service_url == DEFAULT_AGENT_SERVICE_URL
        assert settings.config_scope == "workspaces"
        assert settings.http_read_timeout == DEFAULT_READ_TIMEOUT
        assert settings.use_cookies is False

    def test_env_prefix(self) -> None:
        """Test EMCY_ variables are read."""
        with patch.dict(os.environ, {"EMCY_API_KEY": "from-env", "EMCY_USE_COOKIES": "true"}):
            settings = Settings()

        assert settings.api_key == "from-env"
        assert settings.use_cookies is True

    def test_service_url_normalized(self) -> None:
        """Test the trailing slash is stripped."""
        settings = Settings(agent_service_url="https://api.emcy.test/")

        assert settings.agent_service_url == "https://api.emcy.test"

    def test_service_url_requires_http(self) -> None:
        """Test non-http URLs are rejected."""
        with pytest.raises(ValidationError):
            Settings(agent_service_url="ftp://api.emcy.test")

    def test_scope_case_insensitive(self) -> None:
        """Test the config scope accepts any casing."""
        assert Settings(config_scope="Agents").config_scope == "agents"

    def test_invalid_scope(self) -> None:
        """Test unknown scopes are rejected."""
        with pytest.raises(ValidationError):
            Settings(config_scope="teams")

    @pytest.mark.parametrize("field", ["http_connect_timeout", "http_read_timeout"])
    def test_timeouts_positive(self, field: str) -> None:
        """Test zero or negative timeouts are rejected."""
        with pytest.raises(ValidationError):
            Settings(**{field: 0})


class TestSettingsCache:
    """Tests for get_settings caching."""

    def test_cached(self) -> None:
        """Test get_settings returns the same instance until cleared."""
        first = get_settings()

        assert get_settings() is first

        clear_settings_cache()
        assert get_settings() is not first

    def test_reload(self) -> None:
        """Test reload_settings picks up environment changes."""
        get_settings()

        with patch.dict(os.environ, {"EMCY_AGENT_ID": "reloaded"}):
            settings = reload_settings()

        assert settings.agent_id == "reloaded"
        assert get_settings() is settings

    def test_hot_reload(self) -> None:
        """Test hot reload builds fresh settings on every call."""
        with patch.dict(os.environ, {"EMCY_CONFIG_HOT_RELOAD": "true"}):
            first = get_settings()
            second = get_settings()

        assert first is not second
