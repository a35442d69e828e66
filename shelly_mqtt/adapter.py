from __future__ import annotations

import asyncio
import logging
import socket
from typing import Any, Callable, List, Optional, Tuple, Union

from .config import AdapterConfig, set_debug_logs
from .const import DEVICE_ID_PREFIX
from .dispatcher import CommandDispatcher
from .exceptions import UnknownDevice, UnknownProperty
from .host import DeviceHost
from .ingress import IngressPipeline
from .models import Device
from .mqtt_gateway import MqttGateway
from .registry import DeviceRegistry

_LOGGER = logging.getLogger(__name__)

InboundMessage = Tuple[str, Union[bytes, str]]


class ShellyMqttAdapter:
    """
    Owns the registry, dispatcher and ingress pipeline for one broker.

    The gateway hands every inbound message to `enqueue`; a single consumer
    task drains the queue so messages are applied in arrival order.
    """

    def __init__(
        self,
        config: AdapterConfig,
        host: DeviceHost,
        gateway_factory: Callable[..., MqttGateway] = MqttGateway,
    ) -> None:
        self.config = config
        self.host = host
        self._gateway_factory = gateway_factory
        self.gateway: Optional[MqttGateway] = None
        self.registry = DeviceRegistry(on_device_added=host.device_added, mode_for=config.mode_for)
        self.pipeline = IngressPipeline(self.registry, host)
        self.dispatcher: Optional[CommandDispatcher] = None
        self._queue: "asyncio.Queue[Optional[InboundMessage]]" = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None

    async def start(self) -> None:
        set_debug_logs(self.config.debug_logs)
        host, port = self.config.broker_host, self.config.broker_port
        _LOGGER.debug("-INIT 0/3: Starting adapter: host=%s port=%s tls=%s root=%s",
                      host, port, self.config.broker_tls, self.config.topic_root)

        # 1) Connect to MQTT broker
        gateway = self._gateway_factory(
            host=host,
            port=port,
            username=self.config.broker_username,
            password=self.config.broker_password,
            tls_enabled=self.config.broker_tls,
            on_message=self.enqueue,
            on_connection_change=self._on_connection_change,
        )
        try:
            await gateway.connect()
        except asyncio.TimeoutError:
            _LOGGER.error("-INIT 1/3: MQTT connection timed out for %s:%s", host, port)
            raise ConnectionError(f"MQTT broker connection timed out ({host}:{port}). Check if broker is responding.")
        except ConnectionRefusedError:
            _LOGGER.error("-INIT 1/3: MQTT broker refused connection on %s:%s", host, port)
            raise ConnectionError(f"MQTT connection refused by {host}:{port}. Check if broker is running and port is correct.")
        except socket.gaierror as err:
            _LOGGER.error("-INIT 1/3: Cannot resolve hostname '%s': %s", host, err)
            raise ConnectionError(f"Cannot resolve MQTT broker hostname '{host}'. Check if the address is correct.")
        except ConnectionError as err:
            _LOGGER.error("-INIT 1/3: MQTT connection failed: %s", err)
            raise
        except OSError as err:
            _LOGGER.error("-INIT 1/3: Network error connecting to %s:%s: %s", host, port, err)
            raise ConnectionError(f"Network error connecting to MQTT broker {host}:{port}. Check network/firewall.")
        self.gateway = gateway
        self.dispatcher = CommandDispatcher(gateway, self.registry, root=self.config.topic_root)
        _LOGGER.debug("-INIT 1/3: MQTT connected")

        # 2) Start the single consumer before subscribing so retained messages queue up in order
        self._consumer = asyncio.create_task(self._consume())
        _LOGGER.debug("-INIT 2/3: Ingress consumer started")

        # 3) Subscribe to every device topic
        gateway.subscribe(self.config.subscription)
        _LOGGER.info("Subscribed to %s", self.config.subscription)
        _LOGGER.debug("-INIT 3/3: Setup complete")

    async def stop(self) -> None:
        if self._consumer is not None:
            self._queue.put_nowait(None)
            try:
                await self._consumer
            finally:
                self._consumer = None
        if self.gateway is not None:
            self.gateway.stop()
            self.gateway = None

    # --- Ingress ------------------------------------------------------------------

    def enqueue(self, topic: str, payload: Union[bytes, str]) -> None:
        """Called on the event loop by the gateway for every inbound message."""
        self._queue.put_nowait((topic, payload))

    async def _consume(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                if item is None:
                    return
                topic, payload = item
                try:
                    self.pipeline.process(topic, payload)
                except Exception:
                    # keep the stream alive whatever a host callback does
                    _LOGGER.exception("Unexpected error while processing %s", topic)
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued message has been processed."""
        await self._queue.join()

    async def _on_connection_change(self, is_connected: bool) -> None:
        _LOGGER.info("MQTT connection state changed: %s", "connected" if is_connected else "disconnected")

    # --- Host-originated calls ----------------------------------------------------

    def devices(self) -> List[Device]:
        return self.registry.devices()

    def _device(self, device_id: str) -> Device:
        instance_id = device_id[len(DEVICE_ID_PREFIX):] if device_id.startswith(DEVICE_ID_PREFIX) else device_id
        device = self.registry.get(instance_id)
        if device is None:
            raise UnknownDevice(device_id)
        return device

    def _require_dispatcher(self) -> CommandDispatcher:
        if self.dispatcher is None:
            raise RuntimeError("Adapter is not started")
        return self.dispatcher

    async def set_property(self, device_id: str, name: str, value: Any) -> None:
        device = self._device(device_id)
        handle = device.properties.get(name)
        if handle is None:
            raise UnknownProperty(device.instance_id, name)
        commands = handle.write(device.instance_id, value)
        _LOGGER.debug("Writing %s=%s on %s as %d command(s)", name, value, device.instance_id, len(commands))
        await self._require_dispatcher().dispatch(commands)

    async def perform_action(self, device_id: str, action_name: str) -> None:
        device = self._device(device_id)
        action = device.actions.get(action_name)
        if action is None:
            _LOGGER.warning("Unknown action %s", action_name)
            raise UnknownProperty(device.instance_id, action_name)
        _LOGGER.info("Executing action %s on %s", action_name, device.instance_id)
        await self._require_dispatcher().dispatch(action.invoke(device.instance_id))
