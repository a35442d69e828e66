"""
Tests for the adapter wiring.

The gateway is replaced with a fake that records subscriptions and publishes,
so the adapter runs end to end without a broker.
"""

import asyncio

import pytest
import pytest_asyncio

from shelly_mqtt.adapter import ShellyMqttAdapter
from shelly_mqtt.config import AdapterConfig
from shelly_mqtt.exceptions import ReadOnlyProperty, UnknownDevice, UnknownProperty


class FakeGateway:
    """Stands in for MqttGateway; created by the adapter through its factory."""

    def __init__(self, connect_error=None, **kwargs):
        self.kwargs = kwargs
        self.on_message = kwargs["on_message"]
        self.connect_error = connect_error
        self.subscriptions = []
        self.published = []
        self.stopped = False

    async def connect(self, timeout=10.0):
        if self.connect_error is not None:
            raise self.connect_error

    def subscribe(self, topic, qos=0):
        self.subscriptions.append(topic)

    async def publish(self, topic, payload, qos=0, retain=False):
        self.published.append((topic, payload))

    def stop(self):
        self.stopped = True


def gateway_factory(connect_error=None):
    def _factory(**kwargs):
        return FakeGateway(connect_error=connect_error, **kwargs)
    return _factory


@pytest_asyncio.fixture
async def adapter(host):
    adapter = ShellyMqttAdapter(AdapterConfig(device_modes={"R": "roller"}), host, gateway_factory=gateway_factory())
    await adapter.start()
    yield adapter
    await adapter.stop()


class TestStartStop:
    @pytest.mark.asyncio
    async def test_start_subscribes_to_root(self, adapter):
        assert adapter.gateway.subscriptions == ["shellies/#"]
        assert adapter.gateway.kwargs["host"] == "localhost"
        assert adapter.gateway.kwargs["port"] == 1883

    @pytest.mark.asyncio
    async def test_stop_stops_gateway(self, host):
        adapter = ShellyMqttAdapter(AdapterConfig(), host, gateway_factory=gateway_factory())
        await adapter.start()
        gateway = adapter.gateway
        await adapter.stop()
        assert gateway.stopped
        assert adapter.gateway is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        ConnectionRefusedError(),
        asyncio.TimeoutError(),
        OSError("network unreachable"),
        ConnectionError("MQTT connection failed"),
    ])
    async def test_connect_errors_become_connection_error(self, host, error):
        adapter = ShellyMqttAdapter(AdapterConfig(), host, gateway_factory=gateway_factory(error))
        with pytest.raises(ConnectionError):
            await adapter.start()
        assert adapter.gateway is None
        assert adapter.dispatcher is None


class TestIngress:
    @pytest.mark.asyncio
    async def test_messages_applied_in_order(self, adapter, host):
        on_message = adapter.gateway.on_message
        on_message("shellies/shelly1-A/relay/0", b"on")
        on_message("shellies/shelly1-A/relay/0", b"off")
        on_message("shellies/shelly1-A/relay/0", b"on")
        await adapter.drain()

        assert host.changes == [("A", "relay0", True), ("A", "relay0", False), ("A", "relay0", True)]
        assert [d.instance_id for d in adapter.devices()] == ["A"]

    @pytest.mark.asyncio
    async def test_host_failure_does_not_stop_consumer(self, adapter, host):
        calls = []

        def flaky(device, prop):
            calls.append(prop.name)
            if len(calls) == 1:
                raise RuntimeError("host blew up")

        host.property_changed = flaky
        adapter.enqueue("shellies/shelly1-A/relay/0", b"on")
        adapter.enqueue("shellies/shelly1-A/relay/0", b"off")
        await adapter.drain()

        assert calls == ["relay0", "relay0"]


class TestHostCalls:
    @pytest.mark.asyncio
    async def test_set_property_publishes(self, adapter):
        adapter.enqueue("shellies/shelly1-ABC/relay/0", b"off")
        await adapter.drain()

        await adapter.set_property("shelly-mqtt-ABC", "relay0", True)
        assert adapter.gateway.published == [("shellies/shelly1-ABC/relay/0/command", "on")]

    @pytest.mark.asyncio
    async def test_set_property_accepts_bare_instance_id(self, adapter):
        adapter.enqueue("shellies/shelly1-ABC/relay/0", b"off")
        await adapter.drain()

        await adapter.set_property("ABC", "relay0", False)
        assert adapter.gateway.published == [("shellies/shelly1-ABC/relay/0/command", "off")]

    @pytest.mark.asyncio
    async def test_read_only_property(self, adapter):
        adapter.enqueue("shellies/shellyht-H/sensor/temperature", b"21.5")
        await adapter.drain()

        with pytest.raises(ReadOnlyProperty):
            await adapter.set_property("shelly-mqtt-H", "temperature", 30)
        assert adapter.gateway.published == []

    @pytest.mark.asyncio
    async def test_unknown_device(self, adapter):
        with pytest.raises(UnknownDevice):
            await adapter.set_property("shelly-mqtt-NOPE", "relay0", True)
        assert adapter.gateway.published == []

    @pytest.mark.asyncio
    async def test_unknown_property(self, adapter):
        adapter.enqueue("shellies/shelly1-ABC/relay/0", b"off")
        await adapter.drain()

        with pytest.raises(UnknownProperty):
            await adapter.set_property("shelly-mqtt-ABC", "relay7", True)

    @pytest.mark.asyncio
    async def test_roller_action_and_position(self, adapter):
        adapter.enqueue("shellies/shellyswitch25-R/online", b"true")
        await adapter.drain()

        await adapter.perform_action("shelly-mqtt-R", "open")
        await adapter.set_property("shelly-mqtt-R", "position", 42.4)
        assert adapter.gateway.published == [
            ("shellies/shellyswitch25-R/roller/0/command", "open"),
            ("shellies/shellyswitch25-R/roller/0/command/pos", "42"),
        ]

    @pytest.mark.asyncio
    async def test_unknown_action(self, adapter):
        adapter.enqueue("shellies/shelly1-ABC/relay/0", b"off")
        await adapter.drain()

        with pytest.raises(UnknownProperty):
            await adapter.perform_action("shelly-mqtt-ABC", "open")
