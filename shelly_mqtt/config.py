"""Adapter configuration: schema, validation and loading."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import voluptuous as vol

from .const import (
    CONF_BROKER_HOST,
    CONF_BROKER_PASSWORD,
    CONF_BROKER_PORT,
    CONF_BROKER_TLS,
    CONF_BROKER_USERNAME,
    CONF_DEBUG_LOGS,
    CONF_DEVICE_MODES,
    CONF_TOPIC_ROOT,
    DEFAULT_BROKER_HOST,
    DEFAULT_PORT,
    DEFAULT_TOPIC_ROOT,
    DOMAIN,
)
from .exceptions import ConfigError

_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = vol.Schema({
    vol.Required(CONF_BROKER_HOST, default=DEFAULT_BROKER_HOST): vol.All(str, vol.Length(min=1)),
    vol.Optional(CONF_BROKER_PORT, default=DEFAULT_PORT): vol.All(vol.Coerce(int), vol.Range(min=1, max=65535)),
    vol.Optional(CONF_BROKER_USERNAME, default=None): vol.Any(None, str),
    vol.Optional(CONF_BROKER_PASSWORD, default=None): vol.Any(None, str),
    vol.Optional(CONF_BROKER_TLS, default=False): bool,
    vol.Optional(CONF_TOPIC_ROOT, default=DEFAULT_TOPIC_ROOT): vol.All(str, vol.Length(min=1)),
    vol.Optional(CONF_DEBUG_LOGS, default=False): bool,
    # modes are free text here; unknown ones fall back to relay when the device is built
    vol.Optional(CONF_DEVICE_MODES, default=dict): {str: str},
})


@dataclass(frozen=True)
class AdapterConfig:
    broker_host: str = DEFAULT_BROKER_HOST
    broker_port: int = DEFAULT_PORT
    broker_username: Optional[str] = None
    broker_password: Optional[str] = None
    broker_tls: bool = False
    topic_root: str = DEFAULT_TOPIC_ROOT
    debug_logs: bool = False
    device_modes: Dict[str, str] = field(default_factory=dict)

    @property
    def subscription(self) -> str:
        return f"{self.topic_root}/#"

    def mode_for(self, instance_id: str) -> Optional[str]:
        return self.device_modes.get(instance_id)


def validate_config(data: Mapping[str, Any]) -> AdapterConfig:
    try:
        conf = CONFIG_SCHEMA(dict(data))
    except vol.Invalid as err:
        raise ConfigError(f"Invalid configuration: {err}") from err
    return AdapterConfig(
        broker_host=conf[CONF_BROKER_HOST],
        broker_port=conf[CONF_BROKER_PORT],
        broker_username=conf[CONF_BROKER_USERNAME] or None,
        broker_password=conf[CONF_BROKER_PASSWORD] or None,
        broker_tls=conf[CONF_BROKER_TLS],
        topic_root=conf[CONF_TOPIC_ROOT],
        debug_logs=conf[CONF_DEBUG_LOGS],
        device_modes=dict(conf[CONF_DEVICE_MODES]),
    )


def load_config(path: str) -> AdapterConfig:
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as err:
        raise ConfigError(f"Cannot read configuration {path}: {err}") from err
    except json.JSONDecodeError as err:
        raise ConfigError(f"Configuration {path} is not valid JSON: {err}") from err
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration {path} must be a JSON object")
    _LOGGER.debug("Loaded configuration from %s", path)
    return validate_config(data)


def set_debug_logs(enabled: bool) -> None:
    """Raise the package loggers to DEBUG when debug logs are enabled."""
    logging.getLogger(DOMAIN).setLevel(logging.DEBUG if enabled else logging.INFO)
