from __future__ import annotations
import logging
from enum import Enum
from typing import Union

from .const import ONLINE
from .decoder import decode_value, is_input_event
from .exceptions import DecodeError, ShellyMqttError, UnknownDeviceType, UnknownProperty
from .host import DeviceHost
from .models import UNCHANGED, ConnectivityChange, Device, EventSignal
from .registry import DeviceRegistry
from .topic_parser import TopicIdentifier, parse_topic

_LOGGER = logging.getLogger(__name__)


class Outcome(Enum):
    APPLIED = "applied"
    DISCARDED = "discarded"


class IngressPipeline:
    """
    Parse -> resolve device -> decode -> apply, one inbound message at a time.
    Problems with a single message are logged and the message dropped.
    """

    def __init__(self, registry: DeviceRegistry, host: DeviceHost) -> None:
        self._registry = registry
        self._host = host

    def process(self, topic: str, payload: Union[bytes, str]) -> Outcome:
        text = payload.decode("utf-8", errors="replace") if isinstance(payload, bytes) else payload
        _LOGGER.debug("Received on %s: %s", topic, text)

        ident = parse_topic(topic)
        if ident is None:
            return Outcome.DISCARDED

        try:
            device = self._resolve(ident)
        except UnknownDeviceType as e:
            _LOGGER.debug("Dropped %s: no model for device type %s", topic, e.device_type)
            return Outcome.DISCARDED

        try:
            return self._apply(device, ident, text)
        except DecodeError as e:
            _LOGGER.warning("Failed to decode %s for %s, payload=%s: %s",
                            ident.canonical_property, device.instance_id, text[:100], e.reason)
        except UnknownProperty as e:
            _LOGGER.warning("No property for %s in %s (%s) found", e.name, device.instance_id, device.device_type)
        except ShellyMqttError as e:
            _LOGGER.warning("Dropped message on %s: %s", topic, e)
        return Outcome.DISCARDED

    def _resolve(self, ident: TopicIdentifier) -> Device:
        device = self._registry.get_or_create(
            ident.device_type, ident.device_instance_id, ident.address_prefix
        )
        if device is None:
            raise UnknownDeviceType(ident.device_type)
        return device

    def _apply(self, device: Device, ident: TopicIdentifier, text: str) -> Outcome:
        name = ident.canonical_property

        if is_input_event(name):
            result = decode_value(device.device_type, name, text)
            if result is UNCHANGED:
                _LOGGER.debug("No event in %s for %s", name, device.instance_id)
                return Outcome.DISCARDED
            return self._emit(device, result)

        if name == ONLINE:
            return self._connectivity(device, decode_value(device.device_type, name, text))

        handle = device.find_property(name)
        if handle is None:
            raise UnknownProperty(device.instance_id, name)

        value = decode_value(device.device_type, name, text, handle.value_type)
        for changed in device.update_property(handle, value):
            _LOGGER.debug("Property %s of %s changed to %s", changed.name, device.instance_id, changed.last_value)
            self._host.property_changed(device, changed)
        return Outcome.APPLIED

    def _emit(self, device: Device, event: EventSignal) -> Outcome:
        if event.name not in device.events:
            raise UnknownProperty(device.instance_id, event.name)
        _LOGGER.info("Emitting %s for %s", event.name, device.instance_id)
        self._host.event_emitted(device, event)
        return Outcome.APPLIED

    def _connectivity(self, device: Device, change: ConnectivityChange) -> Outcome:
        if device.set_connected(change.connected):
            _LOGGER.info("Device %s is %s", device.instance_id, "online" if change.connected else "offline")
            self._host.connectivity_changed(device, change.connected)
        return Outcome.APPLIED
