"""Device, property and command model shared by the builder, pipeline and dispatcher."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .const import DEVICE_ID_PREFIX
from .exceptions import DecodeError, InvalidValue, ReadOnlyProperty

_LOGGER = logging.getLogger(__name__)


class ValueType(str, Enum):
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"


class PropertyKind(Enum):
    """Closed set of property variants a device can expose."""

    SWITCH = "switch"
    SWITCH_GROUP = "switch_group"
    POWER = "power"
    POWER_TOTAL = "power_total"
    POSITION = "position"
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    BATTERY = "battery"
    ILLUMINANCE = "illuminance"
    CONTACT = "contact"
    BUTTON = "button"
    TILT = "tilt"
    VIBRATION = "vibration"
    OVERHEAT = "overheat"


@dataclass(frozen=True)
class KindSpec:
    value_type: ValueType
    read_only: bool
    unit: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None


KIND_SPECS: Dict[PropertyKind, KindSpec] = {
    PropertyKind.SWITCH:       KindSpec(ValueType.BOOLEAN, read_only=False),
    PropertyKind.SWITCH_GROUP: KindSpec(ValueType.BOOLEAN, read_only=False),
    PropertyKind.POWER:        KindSpec(ValueType.NUMBER, read_only=True, unit="W"),
    PropertyKind.POWER_TOTAL:  KindSpec(ValueType.NUMBER, read_only=True, unit="W"),
    PropertyKind.POSITION:     KindSpec(ValueType.NUMBER, read_only=False, unit="%", minimum=0, maximum=100),
    PropertyKind.TEMPERATURE:  KindSpec(ValueType.NUMBER, read_only=True, unit="°C"),
    PropertyKind.HUMIDITY:     KindSpec(ValueType.NUMBER, read_only=True, unit="%", minimum=0, maximum=100),
    PropertyKind.BATTERY:      KindSpec(ValueType.NUMBER, read_only=True, unit="%", minimum=0, maximum=100),
    PropertyKind.ILLUMINANCE:  KindSpec(ValueType.NUMBER, read_only=True, unit="lx"),
    PropertyKind.CONTACT:      KindSpec(ValueType.BOOLEAN, read_only=True),
    PropertyKind.BUTTON:       KindSpec(ValueType.BOOLEAN, read_only=True),
    PropertyKind.TILT:         KindSpec(ValueType.NUMBER, read_only=True, unit="°"),
    PropertyKind.VIBRATION:    KindSpec(ValueType.BOOLEAN, read_only=True),
    PropertyKind.OVERHEAT:     KindSpec(ValueType.BOOLEAN, read_only=True),
}


class CommandKind(Enum):
    SET_RELAY = "set_relay"
    SET_ROLLER_STATE = "set_roller_state"
    SET_ROLLER_POSITION = "set_roller_position"
    SET_WHITE = "set_white"


@dataclass(frozen=True)
class Command:
    """A logical outbound command, turned into topic and payload by the dispatcher."""

    device_id: str
    kind: CommandKind
    channel: int = 0
    value: Any = None


@dataclass(frozen=True)
class CommandTemplate:
    kind: CommandKind
    channels: Tuple[int, ...] = (0,)
    # fixed value for actions; property writes supply their own
    value: Any = None

    def build(self, device_id: str, value: Any) -> List[Command]:
        return [Command(device_id, self.kind, channel, value) for channel in self.channels]


class EventKind(str, Enum):
    PRESS = "press"
    LONG_PRESS = "longPress"


@dataclass(frozen=True)
class EventDeclaration:
    name: str
    kind: EventKind
    input_index: int


@dataclass(frozen=True)
class EventSignal:
    name: str
    kind: EventKind
    input_index: int
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ConnectivityChange:
    connected: bool


class Unchanged:
    """Decoder result for payloads that carry nothing to apply."""

    _instance: Optional["Unchanged"] = None

    def __new__(cls) -> "Unchanged":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNCHANGED"

    def __bool__(self) -> bool:
        return False


UNCHANGED = Unchanged()


def matches_type(value_type: ValueType, value: Any) -> bool:
    if value_type is ValueType.BOOLEAN:
        return isinstance(value, bool)
    if value_type is ValueType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, str)


@dataclass
class PropertyHandle:
    name: str
    kind: PropertyKind
    title: str
    value_type: ValueType
    read_only: bool
    unit: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    command: Optional[CommandTemplate] = None
    members: Tuple[str, ...] = ()
    aggregate: Optional[str] = None
    last_value: Any = None

    @classmethod
    def of_kind(
        cls,
        name: str,
        kind: PropertyKind,
        title: str,
        command: Optional[CommandTemplate] = None,
        **kwargs: Any,
    ) -> "PropertyHandle":
        spec = KIND_SPECS[kind]
        return cls(
            name=name,
            kind=kind,
            title=title,
            value_type=spec.value_type,
            read_only=spec.read_only or command is None,
            unit=spec.unit,
            minimum=spec.minimum,
            maximum=spec.maximum,
            command=command,
            **kwargs,
        )

    def update(self, value: Any) -> bool:
        """Cache a decoded value. Returns True if it differs from the previous one."""
        if not matches_type(self.value_type, value):
            raise DecodeError(self.name, repr(value), f"expected {self.value_type.value}")
        if value == self.last_value and type(value) is type(self.last_value):
            return False
        self.last_value = value
        return True

    def write(self, device_id: str, value: Any) -> List[Command]:
        """Validate a host-originated write and return the commands it translates to."""
        if self.read_only or self.command is None:
            raise ReadOnlyProperty(self.name)
        if not matches_type(self.value_type, value):
            raise InvalidValue(self.name, value, f"expected {self.value_type.value}")
        if self.minimum is not None and value < self.minimum:
            raise InvalidValue(self.name, value, f"below minimum {self.minimum}")
        if self.maximum is not None and value > self.maximum:
            raise InvalidValue(self.name, value, f"above maximum {self.maximum}")
        return self.command.build(device_id, value)


@dataclass
class ActionHandle:
    name: str
    title: str
    command: CommandTemplate

    def invoke(self, device_id: str) -> List[Command]:
        return self.command.build(device_id, self.command.value)


class Device:
    """One physical device, created on first inbound contact and kept for the process lifetime."""

    def __init__(
        self,
        instance_id: str,
        device_type: str,
        address_prefix: str,
        mode: Optional[str] = None,
    ) -> None:
        self.instance_id = instance_id
        self.device_type = device_type
        self.address_prefix = address_prefix
        self.mode = mode
        self.properties: Dict[str, PropertyHandle] = {}
        self.actions: Dict[str, ActionHandle] = {}
        self.events: Dict[str, EventDeclaration] = {}
        self.aliases: Dict[str, str] = {}
        self.connected: Optional[bool] = None

    @property
    def unique_id(self) -> str:
        return f"{DEVICE_ID_PREFIX}{self.instance_id}"

    def __repr__(self) -> str:
        return f"<Device {self.device_type} {self.instance_id} mode={self.mode}>"

    # --- Catalog ----------------------------------------------------------------

    def add_property(self, handle: PropertyHandle) -> PropertyHandle:
        if handle.name in self.properties:
            raise ValueError(f"Duplicate property {handle.name} on {self.instance_id}")
        self.properties[handle.name] = handle
        return handle

    def add_action(self, action: ActionHandle) -> ActionHandle:
        self.actions[action.name] = action
        return action

    def add_event(self, event: EventDeclaration) -> EventDeclaration:
        self.events[event.name] = event
        return event

    def add_alias(self, topic_name: str, property_name: str) -> None:
        self.aliases[topic_name] = property_name

    def find_property(self, name: str) -> Optional[PropertyHandle]:
        handle = self.properties.get(name)
        if handle is not None:
            return handle
        alias = self.aliases.get(name)
        if alias is not None:
            return self.properties.get(alias)
        return None

    # --- State ------------------------------------------------------------------

    def update_property(self, handle: PropertyHandle, value: Any) -> List[PropertyHandle]:
        """Cache a value and refresh its aggregate. Returns every handle whose value changed."""
        changed: List[PropertyHandle] = []
        if handle.update(value):
            changed.append(handle)
        if handle.aggregate and changed:
            group = self.properties.get(handle.aggregate)
            if group is not None and self._refresh_aggregate(group):
                changed.append(group)
        return changed

    def set_connected(self, connected: bool) -> bool:
        if self.connected == connected:
            return False
        self.connected = connected
        return True

    def _refresh_aggregate(self, group: PropertyHandle) -> bool:
        values = [self.properties[m].last_value for m in group.members if m in self.properties]
        if group.kind is PropertyKind.SWITCH_GROUP:
            # "all on" is only known once every channel has reported
            if any(v is None for v in values):
                return False
            return group.update(all(values))
        if group.kind is PropertyKind.POWER_TOTAL:
            known = [v for v in values if v is not None]
            if not known:
                return False
            return group.update(sum(known))
        _LOGGER.debug("Property %s is not an aggregate", group.name)
        return False
