"""
Tests for StatusCore process configuration.
"""

import os

from statuscore.config import StatusCoreConfig, get_config, reset_config


class TestDefaults:
    def test_default_values(self):
        config = StatusCoreConfig(_env_file=None)
        assert config.service_name == "statuscore"
        assert config.config_file == "config.yaml"
        assert config.log_level == "info"
        assert config.log_format == "json"


class TestEnvironment:
    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("STATUSCORE_CONFIG_FILE", "/etc/statuscore/config.yaml")
        monkeypatch.setenv("STATUSCORE_LOG_LEVEL", "debug")
        config = StatusCoreConfig(_env_file=None)
        assert config.config_file == "/etc/statuscore/config.yaml"
        assert config.log_level == "debug"

    def test_nested_document_overrides_ignored(self, monkeypatch):
        """STATUSCORE_<SECTION>__<KEY> belongs to the definitions loader."""
        monkeypatch.setenv("STATUSCORE_STATUS_DASHBOARD__SECRET", "x")
        config = StatusCoreConfig(_env_file=None)
        assert not hasattr(config, "status_dashboard")

    def test_home_expanded(self):
        config = StatusCoreConfig(config_file="~/statuscore.yaml", _env_file=None)
        assert config.config_file == os.path.expanduser("~/statuscore.yaml")


class TestSingleton:
    def test_cached_until_reset(self):
        first = get_config()
        assert get_config() is first
        reset_config()
        assert get_config() is not first

    def test_overrides_replace_instance(self):
        config = get_config(log_format="text")
        assert config.log_format == "text"
        assert get_config() is config
