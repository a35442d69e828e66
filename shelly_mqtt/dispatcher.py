"""Translate logical commands into outbound topics and publish them."""
from __future__ import annotations
import json
import logging
from typing import Iterable, Tuple

from .const import (
    DEFAULT_TOPIC_ROOT,
    RELAY_COMMAND_PATH,
    ROLLER_COMMAND_PATH,
    ROLLER_POSITION_PATH,
    WHITE_SET_PATH,
)
from .exceptions import ShellyMqttError, TransportError, UnknownDevice
from .models import Command, CommandKind
from .mqtt_gateway import Publisher
from .registry import DeviceRegistry

_LOGGER = logging.getLogger(__name__)


def command_message(command: Command) -> Tuple[str, str]:
    """Return (sub_path, payload) for a command."""
    kind = command.kind
    if kind is CommandKind.SET_RELAY:
        return RELAY_COMMAND_PATH.format(channel=command.channel), "on" if command.value else "off"
    if kind is CommandKind.SET_ROLLER_STATE:
        return ROLLER_COMMAND_PATH, str(command.value)
    if kind is CommandKind.SET_ROLLER_POSITION:
        return ROLLER_POSITION_PATH, str(int(round(command.value)))
    if kind is CommandKind.SET_WHITE:
        brightness, on = command.value
        return WHITE_SET_PATH, json.dumps({"brightness": brightness, "turn": on})
    raise ValueError(f"Unsupported command kind {kind}")


class CommandDispatcher:
    def __init__(self, publisher: Publisher, registry: DeviceRegistry, root: str = DEFAULT_TOPIC_ROOT) -> None:
        self._publisher = publisher
        self._registry = registry
        self._root = root

    def topic_for(self, instance_id: str, sub_path: str) -> str:
        device = self._registry.get(instance_id)
        if device is None or not device.address_prefix:
            raise UnknownDevice(instance_id)
        return f"{self._root}/{device.address_prefix}/{sub_path}"

    async def send(self, instance_id: str, sub_path: str, payload: str) -> None:
        """Publish to a device. Resolves on broker acknowledgment; never retried."""
        topic = self.topic_for(instance_id, sub_path)
        _LOGGER.info("Sending %s to %s", payload, topic)
        try:
            await self._publisher.publish(topic, payload)
        except ShellyMqttError:
            raise
        except Exception as e:
            _LOGGER.error("Publish to %s failed: %s", topic, e)
            raise TransportError(topic, str(e)) from e

    async def send_command(self, command: Command) -> None:
        sub_path, payload = command_message(command)
        await self.send(command.device_id, sub_path, payload)

    async def dispatch(self, commands: Iterable[Command]) -> None:
        """Send commands in order, each after the previous one was acknowledged."""
        for command in commands:
            await self.send_command(command)
