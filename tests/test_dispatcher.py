"""Unit tests for command translation and publishing."""

import json

import pytest

from shelly_mqtt.builder import build_device
from shelly_mqtt.device_types import DEVICE_TYPES, Capabilities, DeviceCategory
from shelly_mqtt.dispatcher import CommandDispatcher, command_message
from shelly_mqtt.exceptions import InvalidValue, ReadOnlyProperty, TransportError, UnknownDevice
from shelly_mqtt.models import Command, CommandKind


@pytest.fixture
def dispatcher(registry, publisher):
    return CommandDispatcher(publisher, registry)


class TestCommandMessage:
    def test_relay(self):
        assert command_message(Command("A", CommandKind.SET_RELAY, 1, True)) == ("relay/1/command", "on")
        assert command_message(Command("A", CommandKind.SET_RELAY, 0, False)) == ("relay/0/command", "off")

    def test_roller_state(self):
        assert command_message(Command("A", CommandKind.SET_ROLLER_STATE, 0, "stop")) == ("roller/0/command", "stop")

    def test_roller_position(self):
        assert command_message(Command("A", CommandKind.SET_ROLLER_POSITION, 0, 42.6)) == ("roller/0/command/pos", "43")

    def test_white(self):
        sub_path, payload = command_message(Command("A", CommandKind.SET_WHITE, 0, (80, True)))
        assert sub_path == "white/0/set"
        assert json.loads(payload) == {"brightness": 80, "turn": True}


class TestSend:
    @pytest.mark.asyncio
    async def test_unknown_device_fails_without_publish(self, dispatcher, publisher):
        with pytest.raises(UnknownDevice):
            await dispatcher.send("never-seen", "relay/0/command", "on")
        assert publisher.published == []

    @pytest.mark.asyncio
    async def test_publishes_to_observed_prefix(self, dispatcher, registry, publisher):
        registry.get_or_create("shellyplug-s", "7A1B2C", "shellyplug-s-7A1B2C")
        await dispatcher.send("7A1B2C", "relay/0/command", "on")
        assert publisher.published == [("shellies/shellyplug-s-7A1B2C/relay/0/command", "on")]

    @pytest.mark.asyncio
    async def test_custom_root(self, registry, publisher):
        registry.get_or_create("shelly1", "A", "shelly1-A")
        dispatcher = CommandDispatcher(publisher, registry, root="home/shellies")
        await dispatcher.send("A", "relay/0/command", "off")
        assert publisher.published == [("home/shellies/shelly1-A/relay/0/command", "off")]

    @pytest.mark.asyncio
    async def test_publish_error_becomes_transport_error(self, registry, make_publisher):
        registry.get_or_create("shelly1", "A", "shelly1-A")
        dispatcher = CommandDispatcher(make_publisher(error=OSError("socket closed")), registry)
        with pytest.raises(TransportError) as exc_info:
            await dispatcher.send("A", "relay/0/command", "on")
        assert exc_info.value.topic == "shellies/shelly1-A/relay/0/command"

    @pytest.mark.asyncio
    async def test_transport_error_passes_through(self, registry, make_publisher):
        registry.get_or_create("shelly1", "A", "shelly1-A")
        error = TransportError("t", "no connection", 4)
        dispatcher = CommandDispatcher(make_publisher(error=error), registry)
        with pytest.raises(TransportError) as exc_info:
            await dispatcher.send("A", "relay/0/command", "on")
        assert exc_info.value is error


class TestPropertyWrites:
    @pytest.mark.asyncio
    async def test_aggregate_write_fans_out(self, monkeypatch, registry, dispatcher, publisher):
        """Writing true to the aggregate of channels {0, 2} sends exactly two commands."""
        monkeypatch.setitem(DEVICE_TYPES, "shellytest", Capabilities(
            category=DeviceCategory.RELAY,
            model="Test relay",
            relay_channels=frozenset({0, 2}),
        ))
        device = registry.get_or_create("shellytest", "T1", "shellytest-T1")
        assert {"relay0", "relay2", "relay"} <= set(device.properties)

        commands = device.properties["relay"].write(device.instance_id, True)
        await dispatcher.dispatch(commands)

        assert publisher.published == [
            ("shellies/shellytest-T1/relay/0/command", "on"),
            ("shellies/shellytest-T1/relay/2/command", "on"),
        ]

    def test_read_only_write(self, registry):
        device = registry.get_or_create("shellyht", "H1", "shellyht-H1")
        with pytest.raises(ReadOnlyProperty):
            device.properties["temperature"].write("H1", 20)

    def test_wrong_type_write(self, registry):
        device = registry.get_or_create("shelly1", "A", "shelly1-A")
        with pytest.raises(InvalidValue):
            device.properties["relay0"].write("A", "on")

    def test_position_range(self):
        roller = build_device("shellyswitch25", "R", "shellyswitch25-R", mode="roller")
        with pytest.raises(InvalidValue):
            roller.properties["position"].write("R", 101)
        with pytest.raises(InvalidValue):
            roller.properties["position"].write("R", -1)
        assert roller.properties["position"].write("R", 30) == [
            Command("R", CommandKind.SET_ROLLER_POSITION, 0, 30)
        ]
