"""Bridge Shelly devices publishing over MQTT to a typed device/property model."""
from .adapter import ShellyMqttAdapter
from .builder import build_device
from .config import AdapterConfig, load_config, validate_config
from .decoder import decode_value
from .dispatcher import CommandDispatcher, command_message
from .host import DeviceHost, LoggingHost
from .ingress import IngressPipeline, Outcome
from .models import (
    UNCHANGED,
    Command,
    CommandKind,
    ConnectivityChange,
    Device,
    EventKind,
    EventSignal,
    PropertyHandle,
    ValueType,
)
from .registry import DeviceRegistry
from .topic_parser import TopicIdentifier, parse_topic

__version__ = "0.3.0"
