
import logging
from typing import Any, Optional

import paho.mqtt.client as mqtt

from ..config.settings import MqttConfig
from ..core.exceptions import TransportError
from ..security.tls import client_ssl_context


class MqttTransport:
    """Fire-and-forget publisher onto an MQTT broker.

    paho runs its own network thread; ``publish`` only queues the message, so
    it is safe to call while a channel lock is held.
    """

    def __init__(self, config: MqttConfig, logger: Optional[logging.Logger] = None):
        self.config = config
        self._logger = logger or logging.getLogger(__name__)
        self._client: Optional[mqtt.Client] = None
        self.connected = False

    def start(self) -> None:
        self.stop()
        cfg = self.config
        client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=cfg.client_id,
        )
        client.enable_logger(self._logger)
        if cfg.username:
            client.username_pw_set(cfg.username, cfg.password)
        if cfg.tls is not None:
            client.tls_set_context(client_ssl_context(cfg.tls.cafile, cfg.tls.certfile, cfg.tls.keyfile))
        client.reconnect_delay_set(min_delay=1, max_delay=60)

        def on_connect(_c: mqtt.Client, _userdata: Any, _flags: Any, reason_code: Any, _properties: Any) -> None:
            if reason_code.is_failure:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self.connected = True
            self._logger.info("MQTT connected to %s:%s", cfg.host, cfg.port)

        def on_disconnect(_c: mqtt.Client, _userdata: Any, _flags: Any, reason_code: Any, _properties: Any) -> None:
            self.connected = False
            self._logger.warning("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_disconnect = on_disconnect
        client.connect_async(cfg.host, cfg.port, keepalive=cfg.keepalive)
        client.loop_start()
        self._client = client

    def stop(self) -> None:
        client = self._client
        self._client = None
        self.connected = False
        if client is None:
            return
        try:
            client.disconnect()
        finally:
            client.loop_stop()

    def publish(self, topic: str, payload: str) -> None:
        client = self._client
        if client is None:
            raise TransportError('MQTT transport not started')
        info = client.publish(topic, payload, qos=self.config.qos)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise TransportError(f"publish to {topic} failed: {mqtt.error_string(info.rc)}")
