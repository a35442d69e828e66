import asyncio
import ssl
import logging
import secrets
from abc import ABC, abstractmethod
from typing import Callable, Awaitable, Dict, Optional
import paho.mqtt.client as mqtt
from paho.mqtt.enums import CallbackAPIVersion

from .exceptions import TransportError

_LOGGER = logging.getLogger(__name__)


class Publisher(ABC):
    """Anything the command dispatcher can publish through."""

    @abstractmethod
    def publish(self, topic: str, payload: str, qos: int = 0, retain: bool = False) -> Awaitable[None]:
        """Publish a message. The awaitable resolves on transport acknowledgment."""


class MqttGateway(Publisher):
    """MQTT Gateway with async support using paho-mqtt."""

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        tls_enabled: bool,
        on_message: Callable[[str, bytes], None],
        on_connection_change: Optional[Callable[[bool], Awaitable[None]]] = None,
        client_id_prefix: str = "shelly-mqtt",
    ) -> None:
        self._host = host
        self._port = port
        self._on_message_cb = on_message
        self._on_connection_change_cb = on_connection_change
        # Generate unique client ID to avoid conflicts between multiple instances
        unique_suffix = secrets.token_hex(4)
        self._client = mqtt.Client(
            callback_api_version=CallbackAPIVersion.VERSION2,
            client_id=f"{client_id_prefix}-{unique_suffix}",
            clean_session=True,
        )
        if username:
            self._client.username_pw_set(username, password)
        if tls_enabled:
            self._client.tls_set(cert_reqs=ssl.CERT_REQUIRED)
        self._loop = asyncio.get_running_loop()
        self._connect_future: Optional[asyncio.Future] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._is_connected: bool = False
        self._reconnect_count: int = 0

        self._client.on_connect = self._on_connect
        self._client.on_message = self._on_paho_message
        self._client.on_disconnect = self._on_disconnect
        self._client.on_publish = self._on_publish

    async def connect(self, timeout: float = 10.0) -> None:
        """Connect to MQTT broker with timeout. Raises ConnectionError if connection fails."""
        self._connect_future = self._loop.create_future()

        try:
            await self._loop.run_in_executor(None, self._client.connect, self._host, self._port, 60)
            self._client.loop_start()

            # Wait for connection callback with timeout
            try:
                await asyncio.wait_for(self._connect_future, timeout=timeout)
            except asyncio.TimeoutError:
                raise ConnectionError(f"Connection to MQTT broker {self._host}:{self._port} timed out after {timeout}s")

        except Exception:
            # a rejected connack leaves paho's network thread reconnecting
            self._client.loop_stop()
            if self._connect_future and not self._connect_future.done():
                self._connect_future.cancel()
            self._connect_future = None
            raise

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if not reason_code.is_failure:
            was_reconnect = self._reconnect_count > 0
            if was_reconnect:
                _LOGGER.info("Reconnected to MQTT broker (attempt %d)", self._reconnect_count)
                self._reconnect_count = 0
            else:
                _LOGGER.info("Connected to MQTT broker %s:%s", self._host, self._port)

            self._is_connected = True

            if self._on_connection_change_cb:
                asyncio.run_coroutine_threadsafe(self._on_connection_change_cb(True), self._loop)

            if self._connect_future and not self._connect_future.done():
                self._loop.call_soon_threadsafe(self._resolve_connect, None)
        else:
            _LOGGER.error("MQTT connect failed: %s", reason_code)
            self._is_connected = False
            if self._connect_future and not self._connect_future.done():
                self._loop.call_soon_threadsafe(
                    self._resolve_connect, ConnectionError(f"MQTT connection failed: {reason_code}")
                )

    def _resolve_connect(self, error: Optional[Exception]) -> None:
        if self._connect_future is None or self._connect_future.done():
            return
        if error is None:
            self._connect_future.set_result(True)
        else:
            self._connect_future.set_exception(error)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties):
        was_connected = self._is_connected
        self._is_connected = False

        if not reason_code.is_failure:
            _LOGGER.info("MQTT disconnected gracefully")
        else:
            _LOGGER.warning("MQTT disconnected unexpectedly (%s), will auto-reconnect", reason_code)
            self._reconnect_count += 1
            self._loop.call_soon_threadsafe(self._fail_pending, "connection lost")

        # Notify only if we were actually connected
        if was_connected and self._on_connection_change_cb:
            asyncio.run_coroutine_threadsafe(self._on_connection_change_cb(False), self._loop)

    def _on_paho_message(self, client, userdata, msg) -> None:
        """Hand the message to the event loop; call_soon_threadsafe keeps arrival order."""
        self._loop.call_soon_threadsafe(self._on_message_cb, msg.topic, msg.payload)

    def _on_publish(self, client, userdata, mid, reason_code, properties) -> None:
        self._loop.call_soon_threadsafe(self._ack, mid)

    def _ack(self, mid: int) -> None:
        future = self._pending.pop(mid, None)
        if future is not None and not future.done():
            future.set_result(None)

    def subscribe(self, topic: str, qos: int = 0) -> None:
        """Subscribe to an MQTT topic."""
        _LOGGER.debug("Subscribing to topic: %s (QoS %d)", topic, qos)
        self._client.subscribe(topic, qos=qos)

    def publish(self, topic: str, payload: str, qos: int = 0, retain: bool = False) -> "asyncio.Future[None]":
        """
        Publish a message. The returned future resolves once paho reports the
        message as sent (QoS 0) or acknowledged (QoS 1/2).
        """
        future: asyncio.Future = self._loop.create_future()
        info = self._client.publish(topic, payload, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            future.set_exception(TransportError(topic, mqtt.error_string(info.rc), info.rc))
            return future
        # on_publish is delivered through the loop, so it cannot run before this
        self._pending[info.mid] = future
        return future

    @property
    def is_connected(self) -> bool:
        """Return True if currently connected to MQTT broker."""
        return self._is_connected

    def stop(self) -> None:
        """Stop MQTT client and disconnect."""
        self._client.loop_stop()
        self._client.disconnect()
        self._fail_pending("gateway stopped")

    def _fail_pending(self, reason: str) -> None:
        for mid, future in list(self._pending.items()):
            if not future.done():
                future.set_exception(TransportError(f"mid {mid}", reason))
        self._pending.clear()
