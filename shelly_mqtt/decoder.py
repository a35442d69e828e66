from __future__ import annotations
import json
import logging
from typing import Any, Optional, Tuple, Union

from .const import (
    BOOLEAN_TRUE_PAYLOADS,
    EVENT_CODE_KEY,
    EVENT_COUNT_KEY,
    INPUT_EVENT_PREFIX,
    ONLINE,
    ONLINE_TRUE,
    SHORT_PRESS_CODE,
)
from .device_types import get_capabilities
from .exceptions import DecodeError
from .models import (
    UNCHANGED,
    Unchanged,
    ConnectivityChange,
    EventKind,
    EventSignal,
    ValueType,
)

_LOGGER = logging.getLogger(__name__)

DecodeResult = Union[bool, int, float, str, EventSignal, ConnectivityChange, Unchanged]


def is_input_event(name: str) -> bool:
    return name.startswith(INPUT_EVENT_PREFIX)


def input_event_index(name: str) -> int:
    suffix = name[len(INPUT_EVENT_PREFIX):]
    try:
        return int(suffix)
    except ValueError:
        raise DecodeError(name, "", f"invalid input index {suffix!r}") from None


def event_name(index: int, kind: EventKind) -> str:
    return f"input{index}{'Press' if kind is EventKind.PRESS else 'LongPress'}"


def _load_json(name: str, payload: str) -> Any:
    try:
        return json.loads(payload)
    except (json.JSONDecodeError, ValueError) as e:
        raise DecodeError(name, payload, f"invalid JSON: {e}") from None


def decode_input_event(name: str, payload: str):
    """
    Decode an input_event payload such as {"event_cnt": 3, "event": "S"}.
    A zero count or empty code means nothing happened.
    """
    obj = _load_json(name, payload)
    if not isinstance(obj, dict):
        raise DecodeError(name, payload, "event payload is not an object")

    count = obj.get(EVENT_COUNT_KEY)
    code = obj.get(EVENT_CODE_KEY)
    if isinstance(count, bool) or not isinstance(count, int):
        raise DecodeError(name, payload, f"{EVENT_COUNT_KEY} is not an integer")
    if not isinstance(code, str):
        raise DecodeError(name, payload, f"{EVENT_CODE_KEY} is not a string")

    if count < 1 or code == "":
        return UNCHANGED

    index = input_event_index(name)
    kind = EventKind.PRESS if code == SHORT_PRESS_CODE else EventKind.LONG_PRESS
    return EventSignal(name=event_name(index, kind), kind=kind, input_index=index)


def decode_boolean(payload: str) -> bool:
    return payload in BOOLEAN_TRUE_PAYLOADS


def project_envelope(name: str, payload: str, path: Tuple[str, ...]) -> Any:
    value = _load_json(name, payload)
    for key in path:
        if not isinstance(value, dict) or key not in value:
            raise DecodeError(name, payload, f"missing field {'.'.join(path)}")
        value = value[key]
    return value


def coerce_number(name: str, payload: str) -> Union[int, float]:
    text = payload.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise DecodeError(name, payload, "not a number") from None


def decode_value(
    device_type: str,
    name: str,
    payload: str,
    value_type: Optional[ValueType] = None,
) -> DecodeResult:
    """
    Turn a raw payload into the value for canonical property `name`.

    Evaluated in order: input events, boolean properties, JSON envelopes,
    the liveness topic, then plain coercion to the declared type.
    """
    if is_input_event(name):
        return decode_input_event(name, payload)

    if value_type is ValueType.BOOLEAN:
        return decode_boolean(payload)

    caps = get_capabilities(device_type)
    path = caps.envelope_path(name) if caps else None
    if path is not None:
        value = project_envelope(name, payload, path)
        _LOGGER.debug("Projected %s from %s envelope: %s", name, device_type, value)
        if value_type is ValueType.NUMBER and (isinstance(value, bool) or not isinstance(value, (int, float))):
            raise DecodeError(name, payload, f"field {'.'.join(path)} is not a number")
        return value

    if name == ONLINE:
        return ConnectivityChange(connected=payload == ONLINE_TRUE)

    if value_type is ValueType.NUMBER:
        return coerce_number(name, payload)

    return payload
