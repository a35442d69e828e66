"""
Shared fixtures for unit tests.

Provides a recording host and a fake publisher so the pipeline and the
dispatcher can be exercised without a broker.
"""

from unittest.mock import MagicMock

import pytest

from shelly_mqtt.host import DeviceHost
from shelly_mqtt.ingress import IngressPipeline
from shelly_mqtt.mqtt_gateway import Publisher
from shelly_mqtt.registry import DeviceRegistry


class RecordingHost(DeviceHost):
    """Host that records every call it receives."""

    def __init__(self):
        self.added = []
        self.changes = []
        self.events = []
        self.connectivity = []

    def device_added(self, device):
        self.added.append(device)

    def property_changed(self, device, prop):
        self.changes.append((device.instance_id, prop.name, prop.last_value))

    def event_emitted(self, device, event):
        self.events.append((device.instance_id, event))

    def connectivity_changed(self, device, connected):
        self.connectivity.append((device.instance_id, connected))


class FakePublisher(Publisher):
    """Publisher that records messages and acknowledges immediately."""

    def __init__(self, error=None):
        self.published = []
        self.error = error

    async def publish(self, topic, payload, qos=0, retain=False):
        if self.error is not None:
            raise self.error
        self.published.append((topic, payload))


@pytest.fixture
def host():
    return RecordingHost()


@pytest.fixture
def registry(host):
    return DeviceRegistry(on_device_added=host.device_added)


@pytest.fixture
def pipeline(registry, host):
    return IngressPipeline(registry, host)


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def mock_paho_client():
    """
    Mock paho client.

    publish() hands out increasing message ids with a success return code.
    """
    client = MagicMock()
    mids = iter(range(1, 1000))

    def _publish(topic, payload, qos=0, retain=False):
        info = MagicMock()
        info.rc = 0
        info.mid = next(mids)
        return info

    client.publish.side_effect = _publish
    return client


@pytest.fixture
def make_publisher():
    return FakePublisher
