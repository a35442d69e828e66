"""Tests for configuration validation and loading."""

import json
import logging

import pytest

from shelly_mqtt.config import AdapterConfig, load_config, set_debug_logs, validate_config
from shelly_mqtt.exceptions import ConfigError


class TestValidateConfig:
    def test_defaults(self):
        config = validate_config({})
        assert config == AdapterConfig()
        assert config.broker_host == "localhost"
        assert config.broker_port == 1883
        assert config.topic_root == "shellies"
        assert config.subscription == "shellies/#"

    def test_full_config(self):
        config = validate_config({
            "broker_host": "mqtt.local",
            "broker_port": "8883",
            "broker_username": "bridge",
            "broker_password": "secret",
            "broker_tls": True,
            "topic_root": "home/shellies",
            "debug_logs": True,
            "device_modes": {"B1": "roller"},
        })
        assert config.broker_port == 8883
        assert config.broker_tls is True
        assert config.subscription == "home/shellies/#"
        assert config.mode_for("B1") == "roller"
        assert config.mode_for("other") is None

    def test_empty_credentials_become_none(self):
        config = validate_config({"broker_username": "", "broker_password": ""})
        assert config.broker_username is None
        assert config.broker_password is None

    @pytest.mark.parametrize("data", [
        {"broker_port": 0},
        {"broker_port": 70000},
        {"broker_port": "abc"},
        {"broker_host": ""},
        {"broker_tls": "yes"},
        {"device_modes": ["roller"]},
        {"unexpected": 1},
    ])
    def test_invalid(self, data):
        with pytest.raises(ConfigError):
            validate_config(data)


class TestLoadConfig:
    def test_load_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"broker_host": "broker", "device_modes": {"X": "relay"}}))
        config = load_config(str(path))
        assert config.broker_host == "broker"
        assert config.device_modes == {"X": "relay"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="not valid JSON"):
            load_config(str(path))

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigError, match="JSON object"):
            load_config(str(path))


def test_set_debug_logs():
    logger = logging.getLogger("shelly_mqtt")
    previous = logger.level
    try:
        set_debug_logs(True)
        assert logger.level == logging.DEBUG
        set_debug_logs(False)
        assert logger.level == logging.INFO
    finally:
        logger.setLevel(previous)
