"""Device type catalog for the Shelly MQTT bridge."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from .const import MODE_RELAY
from .models import PropertyKind

_LOGGER = logging.getLogger(__name__)


class DeviceCategory(Enum):
    RELAY = "relay"
    SENSOR = "sensor"


@dataclass(frozen=True)
class Capabilities:
    """
    What a device type can do, computed once when the type is resolved.

    Relay devices are built from channel sets and flags; sensor devices from
    the fixed `sensors` list. `envelopes` maps a canonical property name to
    the JSON path holding its value.
    """

    category: DeviceCategory
    model: str
    relay_channels: FrozenSet[int] = frozenset()
    power_meter_channels: FrozenSet[int] = frozenset()
    supports_roller: bool = False
    default_mode: str = MODE_RELAY
    has_internal_temperature: bool = False
    has_overtemperature: bool = False
    input_button_count: int = 0
    sensors: Tuple[Tuple[str, PropertyKind, str], ...] = ()
    envelopes: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()

    def envelope_path(self, name: str) -> Optional[Tuple[str, ...]]:
        for prop, path in self.envelopes:
            if prop == name:
                return path
        return None


# --- Catalog ------------------------------------------------------------------

DEVICE_TYPES: Dict[str, Capabilities] = {
    "shelly1": Capabilities(
        category=DeviceCategory.RELAY,
        model="Shelly 1",
        relay_channels=frozenset({0}),
        input_button_count=1,
    ),
    "shelly1pm": Capabilities(
        category=DeviceCategory.RELAY,
        model="Shelly 1PM",
        relay_channels=frozenset({0}),
        power_meter_channels=frozenset({0}),
        has_internal_temperature=True,
        has_overtemperature=True,
        input_button_count=1,
    ),
    "shelly1l": Capabilities(
        category=DeviceCategory.RELAY,
        model="Shelly 1L",
        relay_channels=frozenset({0}),
        power_meter_channels=frozenset({0}),
        has_internal_temperature=True,
        has_overtemperature=True,
        input_button_count=2,
    ),
    "shellyplug-s": Capabilities(
        category=DeviceCategory.RELAY,
        model="Shelly Plug S",
        relay_channels=frozenset({0}),
        power_meter_channels=frozenset({0}),
        has_internal_temperature=True,
        has_overtemperature=True,
    ),
    "shellyswitch25": Capabilities(
        category=DeviceCategory.RELAY,
        model="Shelly 2.5",
        relay_channels=frozenset({0, 1}),
        power_meter_channels=frozenset({0, 1}),
        supports_roller=True,
        has_internal_temperature=True,
        has_overtemperature=True,
        input_button_count=2,
    ),
    "shelly4pro": Capabilities(
        category=DeviceCategory.RELAY,
        model="Shelly 4Pro",
        relay_channels=frozenset({0, 1, 2, 3}),
        power_meter_channels=frozenset({0, 1, 2, 3}),
    ),
    "shellyht": Capabilities(
        category=DeviceCategory.SENSOR,
        model="Shelly H&T",
        sensors=(
            ("temperature", PropertyKind.TEMPERATURE, "Temperature"),
            ("humidity", PropertyKind.HUMIDITY, "Humidity"),
            ("battery", PropertyKind.BATTERY, "Battery"),
        ),
    ),
    "shellydw2": Capabilities(
        category=DeviceCategory.SENSOR,
        model="Shelly Door/Window 2",
        sensors=(
            ("state", PropertyKind.CONTACT, "Open"),
            ("illuminance", PropertyKind.ILLUMINANCE, "Illuminance"),
            ("tilt", PropertyKind.TILT, "Tilt"),
            ("vibration", PropertyKind.VIBRATION, "Vibration"),
            ("temperature", PropertyKind.TEMPERATURE, "Temperature"),
            ("battery", PropertyKind.BATTERY, "Battery"),
        ),
    ),
    "shellyplusht": Capabilities(
        category=DeviceCategory.SENSOR,
        model="Shelly Plus H&T",
        sensors=(
            ("temperature0", PropertyKind.TEMPERATURE, "Temperature"),
            ("humidity0", PropertyKind.HUMIDITY, "Humidity"),
            ("battery", PropertyKind.BATTERY, "Battery"),
        ),
        envelopes=(
            ("battery", ("battery", "percent")),
            ("temperature0", ("tC",)),
            ("humidity0", ("rh",)),
        ),
    ),
}


def get_capabilities(device_type: str) -> Optional[Capabilities]:
    caps = DEVICE_TYPES.get(device_type)
    if caps is None:
        _LOGGER.debug("No capabilities for device type %s", device_type)
    return caps


def supported_device_types() -> Tuple[str, ...]:
    return tuple(DEVICE_TYPES)
