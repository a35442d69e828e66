"""Assemble a device's property, action and event catalog from its capabilities."""
from __future__ import annotations
import logging
from typing import Optional

from .const import (
    DEVICE_MODES,
    INTERNAL_TEMPERATURE,
    INTERNAL_TEMPERATURE_TOPIC,
    MAX_RELAY_CHANNELS,
    MODE_RELAY,
    MODE_ROLLER,
    OVERTEMPERATURE,
    POWER_METER_PREFIX,
    POWER_TOTAL,
    RELAY_GROUP,
    RELAY_PREFIX,
    ROLLER_ACTIONS,
    ROLLER_POSITION,
)
from .decoder import event_name
from .device_types import Capabilities, DeviceCategory, get_capabilities, supported_device_types
from .models import (
    ActionHandle,
    CommandKind,
    CommandTemplate,
    Device,
    EventDeclaration,
    EventKind,
    PropertyHandle,
    PropertyKind,
)

_LOGGER = logging.getLogger(__name__)


def resolve_mode(caps: Capabilities, mode: Optional[str], instance_id: str) -> str:
    """Pick relay or roller mode. Anything unusable falls back to relay."""
    if not mode:
        return caps.default_mode
    if mode not in DEVICE_MODES:
        _LOGGER.warning("Unknown device mode %s for %s, assuming relay", mode, instance_id)
        return MODE_RELAY
    if mode == MODE_ROLLER and not caps.supports_roller:
        _LOGGER.warning("Device %s (%s) has no roller mode, assuming relay", instance_id, caps.model)
        return MODE_RELAY
    return mode


def build_device(
    device_type: str,
    instance_id: str,
    address_prefix: str,
    mode: Optional[str] = None,
) -> Optional[Device]:
    caps = get_capabilities(device_type)
    if caps is None:
        _LOGGER.debug("Unknown device type %s (supported: %s)", device_type, ", ".join(supported_device_types()))
        return None

    if caps.category is DeviceCategory.SENSOR:
        device = Device(instance_id, device_type, address_prefix)
        add_sensors(device, caps)
    else:
        device = Device(instance_id, device_type, address_prefix, resolve_mode(caps, mode, instance_id))
        if device.mode == MODE_ROLLER:
            add_roller(device)
        else:
            add_relays(device, caps)
            add_power_meters(device, caps)

    add_internal_temperature(device, caps)
    add_buttons(device, caps)

    _LOGGER.debug("Built %r with properties %s", device, list(device.properties))
    return device


def add_relays(device: Device, caps: Capabilities) -> None:
    _LOGGER.debug("Configuring relay mode for %s", device.instance_id)
    channels = [i for i in range(MAX_RELAY_CHANNELS) if i in caps.relay_channels]
    grouped = len(channels) > 1

    for i in channels:
        device.add_property(PropertyHandle.of_kind(
            f"{RELAY_PREFIX}{i}",
            PropertyKind.SWITCH,
            f"Relay {i + 1}" if grouped else "Relay",
            command=CommandTemplate(CommandKind.SET_RELAY, (i,)),
            aggregate=RELAY_GROUP if grouped else None,
        ))

    if grouped:
        device.add_property(PropertyHandle.of_kind(
            RELAY_GROUP,
            PropertyKind.SWITCH_GROUP,
            "All relays",
            command=CommandTemplate(CommandKind.SET_RELAY, tuple(channels)),
            members=tuple(f"{RELAY_PREFIX}{i}" for i in channels),
        ))


def add_power_meters(device: Device, caps: Capabilities) -> None:
    channels = [i for i in range(MAX_RELAY_CHANNELS) if i in caps.power_meter_channels]
    grouped = len(channels) > 1

    for i in channels:
        device.add_property(PropertyHandle.of_kind(
            f"{POWER_METER_PREFIX}{i}",
            PropertyKind.POWER,
            f"Power {i + 1}" if grouped else "Power",
            aggregate=POWER_TOTAL if grouped else None,
        ))

    if grouped:
        device.add_property(PropertyHandle.of_kind(
            POWER_TOTAL,
            PropertyKind.POWER_TOTAL,
            "Total power",
            members=tuple(f"{POWER_METER_PREFIX}{i}" for i in channels),
        ))


def add_roller(device: Device) -> None:
    _LOGGER.debug("Configuring roller mode for %s", device.instance_id)
    device.add_property(PropertyHandle.of_kind(
        ROLLER_POSITION,
        PropertyKind.POSITION,
        "Position",
        command=CommandTemplate(CommandKind.SET_ROLLER_POSITION),
    ))
    for action in ROLLER_ACTIONS:
        device.add_action(ActionHandle(
            name=action,
            title=action.capitalize(),
            command=CommandTemplate(CommandKind.SET_ROLLER_STATE, value=action),
        ))


def add_sensors(device: Device, caps: Capabilities) -> None:
    for name, kind, title in caps.sensors:
        device.add_property(PropertyHandle.of_kind(name, kind, title))


def add_internal_temperature(device: Device, caps: Capabilities) -> None:
    if caps.has_internal_temperature:
        _LOGGER.debug("Detected internal temperature on %s", device.instance_id)
        device.add_property(PropertyHandle.of_kind(
            INTERNAL_TEMPERATURE, PropertyKind.TEMPERATURE, "Internal temperature",
        ))
        # relays report it on the bare "temperature" topic
        device.add_alias(INTERNAL_TEMPERATURE_TOPIC, INTERNAL_TEMPERATURE)
    if caps.has_overtemperature:
        device.add_property(PropertyHandle.of_kind(
            OVERTEMPERATURE, PropertyKind.OVERHEAT, "Overheated",
        ))


def add_buttons(device: Device, caps: Capabilities) -> None:
    for i in range(caps.input_button_count):
        device.add_property(PropertyHandle.of_kind(f"input{i}", PropertyKind.BUTTON, f"Button {i + 1}"))
        for kind in (EventKind.PRESS, EventKind.LONG_PRESS):
            device.add_event(EventDeclaration(event_name(i, kind), kind, i))
