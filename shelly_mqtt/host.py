"""Host application boundary: where device catalogs and state changes are delivered."""

import logging
from abc import ABC, abstractmethod

from .models import Device, EventSignal, PropertyHandle

_LOGGER = logging.getLogger(__name__)


class DeviceHost(ABC):
    """Abstract host interface."""

    @abstractmethod
    def device_added(self, device: Device) -> None:
        """Register a newly discovered device. Called once per device."""
        pass

    @abstractmethod
    def property_changed(self, device: Device, prop: PropertyHandle) -> None:
        """A property's cached value changed."""
        pass

    @abstractmethod
    def event_emitted(self, device: Device, event: EventSignal) -> None:
        """A button event occurred."""
        pass

    @abstractmethod
    def connectivity_changed(self, device: Device, connected: bool) -> None:
        """The device went online or offline."""
        pass


class LoggingHost(DeviceHost):
    """Host that only logs what it receives."""

    def device_added(self, device: Device) -> None:
        _LOGGER.info(
            "Device added: %s (%s) properties=%s actions=%s events=%s",
            device.unique_id,
            device.device_type,
            list(device.properties),
            list(device.actions),
            list(device.events),
        )

    def property_changed(self, device: Device, prop: PropertyHandle) -> None:
        _LOGGER.info("%s %s = %s%s", device.unique_id, prop.name, prop.last_value, prop.unit or "")

    def event_emitted(self, device: Device, event: EventSignal) -> None:
        _LOGGER.info("%s event %s (%s)", device.unique_id, event.name, event.kind.value)

    def connectivity_changed(self, device: Device, connected: bool) -> None:
        _LOGGER.info("%s is %s", device.unique_id, "online" if connected else "offline")
