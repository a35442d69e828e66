from __future__ import annotations
import logging
import threading
from typing import Callable, Dict, List, Optional

from .builder import build_device
from .models import Device

_LOGGER = logging.getLogger(__name__)

DeviceBuilder = Callable[[str, str, str, Optional[str]], Optional[Device]]


class DeviceRegistry:
    """
    Devices keyed by instance id. A device is built on first sight and kept
    for the process lifetime; there is no removal.
    """

    def __init__(
        self,
        builder: DeviceBuilder = build_device,
        on_device_added: Optional[Callable[[Device], None]] = None,
        mode_for: Optional[Callable[[str], Optional[str]]] = None,
    ) -> None:
        self._builder = builder
        self._on_device_added = on_device_added
        self._mode_for = mode_for
        self._devices: Dict[str, Device] = {}
        self._lock = threading.Lock()

    def get_or_create(self, device_type: str, instance_id: str, address_prefix: str) -> Optional[Device]:
        device = self._devices.get(instance_id)
        if device is not None:
            return device

        with self._lock:
            # another caller may have created it while we waited
            device = self._devices.get(instance_id)
            if device is not None:
                return device
            mode = self._mode_for(instance_id) if self._mode_for else None
            device = self._builder(device_type, instance_id, address_prefix, mode)
            if device is None:
                return None
            self._devices[instance_id] = device

        _LOGGER.info("Discovered new device: %s (%s, prefix %s)", instance_id, device_type, address_prefix)
        if self._on_device_added:
            try:
                self._on_device_added(device)
            except Exception:
                # the device stays registered; its messages keep flowing
                _LOGGER.exception("Host failed to register device %s", instance_id)
        return device

    def get(self, instance_id: str) -> Optional[Device]:
        return self._devices.get(instance_id)

    def devices(self) -> List[Device]:
        return list(self._devices.values())

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, instance_id: object) -> bool:
        return instance_id in self._devices
