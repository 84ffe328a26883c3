"""Tests for client and collector configuration."""

import json
import logging
import re
from pathlib import Path

import pytest

from faro_lite.config import ClientConfig, CollectorConfig, Config, generate_session_id
from faro_lite.errors import ConfigError


SAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "config.sample.yaml"


class TestClientConfig:
    def test_defaults(self):
        config = ClientConfig()
        assert config.url == "http://localhost:4328/collect"
        assert config.app_name == "faro-lite-app"
        assert config.platform == "python"
        assert config.timeout == 5.0
        assert config.retries == 0
        assert config.transport_type == "http"
        assert config.enabled and config.metrics_enabled and config.tracing_enabled

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("FARO_URL", "http://env/collect")
        monkeypatch.setenv("FARO_APP_NAME", "env-app")
        monkeypatch.setenv("FARO_ENVIRONMENT", "staging")
        monkeypatch.setenv("FARO_METRICS_ENABLED", "false")
        monkeypatch.setenv("FARO_TIMEOUT", "2.5")
        monkeypatch.setenv("FARO_TRANSPORT", "Console")

        config = ClientConfig()
        assert config.url == "http://env/collect"
        assert config.app_name == "env-app"
        assert config.environment == "staging"
        assert config.metrics_enabled is False
        assert config.timeout == 2.5
        assert config.transport_type == "console"

    def test_arguments_beat_environment(self, monkeypatch):
        monkeypatch.setenv("FARO_APP_NAME", "env-app")
        assert ClientConfig(app_name="explicit").app_name == "explicit"

    def test_bad_timeout_env(self, monkeypatch):
        monkeypatch.setenv("FARO_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="FARO_TIMEOUT"):
            ClientConfig()

    @pytest.mark.parametrize("kwargs", [
        {"transport_type": "carrier-pigeon"},
        {"timeout": 0},
        {"retries": -1},
        {"max_queue_size": 0},
        {"workers": 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigError):
            ClientConfig(**kwargs)

    def test_log_level_value(self):
        assert ClientConfig(log_level="debug").log_level_value == logging.DEBUG
        assert ClientConfig(log_level="nonsense").log_level_value == logging.INFO

    def test_base_session(self):
        config = ClientConfig(
            platform="ios",
            session_id="sess-1",
            app_name="shop",
            app_version="2.0",
            environment="prod",
            session_attributes={"region": "eu"},
        )
        assert config.base_session() == {
            "platform": "ios",
            "session_id": "sess-1",
            "app_name": "shop",
            "app_version": "2.0",
            "environment": "prod",
            "region": "eu",
        }

    def test_session_ids_unique(self):
        assert ClientConfig().session_id != ClientConfig().session_id

    def test_session_id_format(self):
        assert re.fullmatch(r"python-\d+-[0-9a-f]{9}", generate_session_id())
        assert generate_session_id("ios").startswith("ios-")


class TestConfigLoading:
    def test_from_dict(self):
        config = Config.from_dict({
            "client": {"app_name": "shop", "retries": 2},
            "collector": {"port": 9999},
        })
        assert config.client.app_name == "shop"
        assert config.client.retries == 2
        assert config.collector.port == 9999
        assert config.collector.path == "/collect"

    def test_from_dict_empty(self):
        config = Config.from_dict({})
        assert isinstance(config.client, ClientConfig)
        assert config.collector == CollectorConfig()

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="Invalid config"):
            Config.from_dict({"client": {"colour": "blue"}})

    def test_non_mapping_root(self):
        with pytest.raises(ConfigError):
            Config.from_dict(["not", "a", "mapping"])

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "client:\n"
            "  app_name: yaml-app\n"
            "  transport_type: file\n"
            "  transport_config:\n"
            "    path: out.jsonl\n"
            "collector:\n"
            "  max_events: 5\n"
        )
        config = Config.from_yaml(str(path))
        assert config.client.app_name == "yaml-app"
        assert config.client.transport_config == {"path": "out.jsonl"}
        assert config.collector.max_events == 5

    def test_from_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert Config.from_yaml(str(path)).collector.port == 4328

    def test_from_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"client": {"environment": "ci"}}))
        assert Config.from_json(str(path)).client.environment == "ci"

    def test_sample_config_loads(self):
        config = Config.from_yaml(str(SAMPLE_CONFIG))
        assert config.client.session_attributes == {"region": "local"}
        assert config.collector.port == 4328


class TestConfigScript:
    def test_describe_sample(self, capsys):
        import config as config_script

        assert config_script.describe(SAMPLE_CONFIG) == 0
        out = capsys.readouterr().out
        assert "ships to http://localhost:4328/collect via http" in out
        assert "listens on http://127.0.0.1:4328/collect" in out

    def test_describe_invalid(self, tmp_path, capsys):
        import config as config_script

        path = tmp_path / "config.yaml"
        path.write_text("client:\n  transport_type: pigeon\n")
        assert config_script.describe(path) == 1
        assert "invalid: config.yaml" in capsys.readouterr().out
