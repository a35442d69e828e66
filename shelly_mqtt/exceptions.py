"""Exceptions raised by the Shelly MQTT bridge."""
from __future__ import annotations

from typing import Optional


class ShellyMqttError(Exception):
    """Base class for bridge errors."""


class MalformedTopic(ShellyMqttError):
    """Inbound topic does not follow the device topic grammar."""

    def __init__(self, topic: str, reason: str) -> None:
        self.topic = topic
        self.reason = reason
        super().__init__(f"Malformed topic {topic!r}: {reason}")


class UnknownDeviceType(ShellyMqttError):
    """No device model exists for the observed device type."""

    def __init__(self, device_type: str) -> None:
        self.device_type = device_type
        super().__init__(f"Unknown device type {device_type!r}")


class UnknownProperty(ShellyMqttError):
    """A canonical name has no matching property, action or event on a device."""

    def __init__(self, device_id: str, name: str) -> None:
        self.device_id = device_id
        self.name = name
        super().__init__(f"No property {name!r} on device {device_id}")


class DecodeError(ShellyMqttError):
    """Payload does not match the declared type of its property."""

    def __init__(self, name: str, payload: str, reason: str) -> None:
        self.name = name
        self.payload = payload
        self.reason = reason
        super().__init__(f"Cannot decode {name!r} from payload {payload!r}: {reason}")


class UnknownDevice(ShellyMqttError):
    """Outbound command targets a device that was never seen inbound."""

    def __init__(self, device_id: str) -> None:
        self.device_id = device_id
        super().__init__(f"Unknown mqtt device {device_id}")


class TransportError(ShellyMqttError):
    """Publishing to the broker failed."""

    def __init__(self, topic: str, reason: str, rc: Optional[int] = None) -> None:
        self.topic = topic
        self.reason = reason
        self.rc = rc
        super().__init__(f"Publish to {topic} failed: {reason}")


class ReadOnlyProperty(ShellyMqttError):
    """Host attempted to write a read-only property."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Property {name!r} is read-only")


class InvalidValue(ShellyMqttError):
    """Host supplied a value the property cannot accept."""

    def __init__(self, name: str, value: object, reason: str) -> None:
        self.name = name
        self.value = value
        super().__init__(f"Invalid value {value!r} for {name!r}: {reason}")


class ConfigError(ShellyMqttError):
    """Adapter configuration failed validation."""
