"""A small, connection-aware wrapper around an MQTT client."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from paho.mqtt import client as mqtt_client

ClientFactory = Callable[[], Any]
MessageCallback = Callable[[Any], None]


class MQTTError(Exception):
    """Raised when talking to the MQTT broker fails."""


class NotConnectedError(MQTTError):
    """Raised when an operation needs a connection that is not established."""

    def __init__(self) -> None:
        super().__init__("not connected to MQTT broker")


def _default_client() -> Any:
    return mqtt_client.Client(mqtt_client.CallbackAPIVersion.VERSION2)


def _failed(reason_code: Any) -> bool:
    is_failure = getattr(reason_code, "is_failure", None)
    if is_failure is not None:
        return bool(is_failure)
    return reason_code != 0


def _check(result: Any, action: str) -> None:
    if result != mqtt_client.MQTT_ERR_SUCCESS:
        raise MQTTError(f"{action} failed: {mqtt_client.error_string(result)}")


class MQTTProxy:
    """Keeps one MQTT client and tracks whether it is connected.

    ``connect`` does nothing while a connection is up; after the connection
    is lost, the next ``connect`` replaces the client with a fresh one.
    """

    def __init__(
        self,
        ip: str,
        port: str,
        username: str,
        password: str,
        *,
        client_factory: Optional[ClientFactory] = None,
        connect_timeout: float = 30.0,
    ) -> None:
        self.ip = ip
        self.port = port
        self.username = username
        self._password = password
        self._client_factory = client_factory or _default_client
        self.connect_timeout = connect_timeout
        self.is_connected = False
        self._client: Any = None

    def __repr__(self) -> str:
        return f"MQTTProxy(broker={self.broker_url!r}, connected={self.is_connected})"

    def __enter__(self) -> MQTTProxy:
        self.connect()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.disconnect()

    @property
    def broker_url(self) -> str:
        """Address of the broker in ``tcp://host:port`` form."""
        return f"tcp://{self.ip}:{self.port}"

    def connect(self) -> None:
        """Connect to the broker unless already connected; raise MQTTError on failure."""
        if self.is_connected:
            return
        try:
            port = int(self.port)
        except ValueError:
            raise MQTTError(f"invalid broker port: {self.port!r}") from None

        self._discard_client()
        client = self._client_factory()
        client.username_pw_set(self.username, self._password)

        acknowledged = threading.Event()
        outcome: dict[str, Any] = {}

        def on_connect(_client, _userdata, _flags, reason_code, _properties=None):
            outcome["reason"] = reason_code
            acknowledged.set()

        def on_disconnect(_client, _userdata, _flags, reason_code, _properties=None):
            if _failed(reason_code):
                print(f"Connection lost: {reason_code}")
            self.is_connected = False

        client.on_connect = on_connect
        client.on_disconnect = on_disconnect

        try:
            client.connect(self.ip, port)
        except (OSError, ValueError) as exc:
            raise MQTTError(f"cannot connect to {self.broker_url}: {exc}") from exc

        client.loop_start()
        if not acknowledged.wait(self.connect_timeout):
            client.loop_stop()
            raise MQTTError(f"timed out waiting for {self.broker_url} to accept the connection")

        reason = outcome["reason"]
        if _failed(reason):
            client.loop_stop()
            raise MQTTError(f"connection to {self.broker_url} refused: {reason}")

        self._client = client
        self.is_connected = True

    def disconnect(self) -> None:
        """Close the connection if there is one."""
        if not self.is_connected:
            return
        client = self._client
        self.is_connected = False
        self._client = None
        client.disconnect()
        client.loop_stop()

    def publish(self, topic: str, payload: str) -> None:
        """Publish ``payload`` on ``topic`` with QoS 0 and wait until it is sent."""
        client = self._connected_client()
        info = client.publish(topic, payload, qos=0, retain=False)
        _check(info.rc, "publish")
        try:
            info.wait_for_publish()
        except (RuntimeError, ValueError) as exc:
            raise MQTTError(f"publish failed: {exc}") from exc

    def subscribe(self, topic: str, callback: MessageCallback) -> None:
        """Subscribe to ``topic``; ``callback`` receives every message delivered on it."""
        client = self._connected_client()

        def handler(_client, _userdata, message):
            callback(message)

        client.message_callback_add(topic, handler)
        result, _mid = client.subscribe(topic, qos=0)
        try:
            _check(result, "subscribe")
        except MQTTError:
            client.message_callback_remove(topic)
            raise

    def unsubscribe(self, topic: str) -> None:
        """Stop receiving messages on ``topic``."""
        client = self._connected_client()
        result, _mid = client.unsubscribe(topic)
        _check(result, "unsubscribe")
        client.message_callback_remove(topic)

    def _connected_client(self) -> Any:
        if not self.is_connected or self._client is None:
            raise NotConnectedError()
        return self._client

    def _discard_client(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            client.disconnect()
            client.loop_stop()