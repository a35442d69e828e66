from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional

from .const import (
    BATTERY_STATUS_KEY,
    DEVICE_DELIMITER,
    ILLUMINANCE,
    INDEXED_KINDS,
    LUX_KEY,
    POWER_METER_PREFIX,
    POWER_SUBPROPERTY,
    SENSOR_KIND,
    STATUS_KIND,
    STATUS_SEPARATOR,
)
from .exceptions import MalformedTopic

_LOGGER = logging.getLogger(__name__)

@dataclass(frozen=True)
class TopicIdentifier:
    raw: str
    device_component: str
    device_type: str
    device_instance_id: str
    canonical_property: str
    sub_property: Optional[str] = None

    @property
    def address_prefix(self) -> str:
        # exact segment seen on the wire, reused for outbound commands
        return self.device_component

def split_device_component(device: str) -> Optional[tuple[str, str]]:
    """Split "<type>-<suffix>" at the last delimiter; type names may contain it too."""
    delimiter = device.rfind(DEVICE_DELIMITER)
    if delimiter <= 0:
        return None
    return device[:delimiter], device[delimiter + 1:]

def canonical_property_name(segments: List[str]) -> Optional[str]:
    """
    Map the segments after the device component to a canonical property name.
    Returns None for every combination outside the grammar.
    """
    if len(segments) == 1:
        return segments[0]

    if len(segments) == 2:
        kind, sub = segments
        if kind in INDEXED_KINDS:
            if not sub.isdigit():
                _LOGGER.debug("Invalid %s index %r", kind, sub)
                return None
            return f"{kind}{sub}"
        if kind == SENSOR_KIND:
            if sub == LUX_KEY:
                return ILLUMINANCE
            return sub
        if kind == STATUS_KIND:
            if sub == BATTERY_STATUS_KEY:
                return "battery"
            return sub.replace(STATUS_SEPARATOR, "")
        _LOGGER.debug("Unknown property %s", kind)
        return None

    if len(segments) == 3:
        kind, index, sub = segments
        if kind == "relay":
            if not index.isdigit():
                _LOGGER.debug("Invalid relay index %r", index)
                return None
            if sub == POWER_SUBPROPERTY:
                return f"{POWER_METER_PREFIX}{index}"
            _LOGGER.debug("Unknown subproperty %s of relay %s", sub, index)
            return None
        _LOGGER.debug("Unknown property %s with %d segments", kind, len(segments))
        return None

    _LOGGER.debug("Unexpected segment count %d", len(segments))
    return None

def split_topic(topic: str) -> TopicIdentifier:
    """Strict form of parse_topic: raises MalformedTopic instead of returning None."""
    parts = topic.split("/")
    # <root>/<type>-<suffix>/<segments...>
    if len(parts) < 3:
        raise MalformedTopic(topic, "too short")

    device = parts[1]
    split = split_device_component(device)
    if split is None:
        raise MalformedTopic(topic, "no device delimiter")
    device_type, instance_id = split
    if not instance_id:
        raise MalformedTopic(topic, "empty device id")

    segments = parts[2:]
    name = canonical_property_name(segments)
    if not name:
        raise MalformedTopic(topic, "no property match")

    return TopicIdentifier(
        raw=topic,
        device_component=device,
        device_type=device_type,
        device_instance_id=instance_id,
        canonical_property=name,
        sub_property=segments[-1] if len(segments) > 1 else None,
    )

def parse_topic(topic: str) -> Optional[TopicIdentifier]:
    try:
        return split_topic(topic)
    except MalformedTopic as e:
        _LOGGER.debug("Ignored topic (%s): %s", e.reason, topic)
        return None
