#!/usr/bin/env python3
"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                    📡 MQTT Ingest Bridge - Hydro-Monitor                     ║
║                      Layer 1: Publish/Subscribe Feed                          ║
╚══════════════════════════════════════════════════════════════════════════════╝

Se suscribe a los tópicos del nodo sensor, normaliza cada mensaje con el
plugin del tópico, lo mezcla en la caché de última lectura y entrega la
lectura completa a los callbacks registrados (historial, live feed, alertas).

Author: Hydro-Monitor Team
"""

import json
import logging
from typing import Callable, List, Optional

import paho.mqtt.client as mqtt

from ingestion.config import MqttSettings
from ingestion.models import LatestReadingCache, SensorReading
from ingestion.registry import PluginNotFoundError, PluginRegistry, get_default_registry


logger = logging.getLogger(__name__)


class MqttIngestBridge:
    """
    📡 Puente entre el broker MQTT y el pipeline.

    Ejemplo:
        bridge = MqttIngestBridge(MqttSettings.from_env())
        bridge.add_callback(pipeline.process_reading)
        bridge.start()
    """

    def __init__(
        self,
        settings: Optional[MqttSettings] = None,
        cache: Optional[LatestReadingCache] = None,
        registry: Optional[PluginRegistry] = None,
        client: Optional[mqtt.Client] = None,
    ):
        self.settings = settings or MqttSettings()
        self.cache = cache or LatestReadingCache()
        self.registry = registry if registry is not None else get_default_registry()
        self._callbacks: List[Callable[[SensorReading], None]] = []

        self._client = client or mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.settings.client_id,
        )
        if self.settings.username:
            self._client.username_pw_set(self.settings.username, self.settings.password)

        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message

        self._messages_received = 0
        self._messages_rejected = 0

    def add_callback(self, callback: Callable[[SensorReading], None]) -> None:
        """Agrega un callback para cada lectura completa."""
        self._callbacks.append(callback)

    def start(self) -> None:
        """Conecta al broker y arranca el loop de red en un hilo."""
        logger.info(f"🚀 Connecting to MQTT broker {self.settings.host}:{self.settings.port}")
        self._client.connect_async(self.settings.host, self.settings.port, self.settings.keepalive)
        self._client.loop_start()

    def stop(self) -> None:
        self._client.loop_stop()
        self._client.disconnect()
        logger.info("🛑 MQTT bridge stopped")

    # ─── Callbacks de paho ───────────────────────────────────────────────────

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            logger.error(f"❌ MQTT connection refused: {reason_code}")
            self.cache.mark_error(f"MQTT connection refused: {reason_code}")
            return

        logger.info("✅ MQTT client connected")
        topics = self.settings.topics or self.registry.topics()
        client.subscribe([(topic, 0) for topic in topics])
        logger.info(f"✅ Subscribed to {', '.join(topics)}")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            logger.warning(f"⚠️ MQTT client offline: {reason_code}")
            self.cache.mark_error(f"MQTT disconnected: {reason_code}")

    def _on_message(self, client, userdata, message):
        self.handle_message(message.topic, message.payload)

    # ─── Procesamiento ───────────────────────────────────────────────────────

    def handle_message(self, topic: str, payload: bytes) -> Optional[SensorReading]:
        """
        Procesa un mensaje crudo de un tópico.

        Returns:
            La lectura completa entregada a los callbacks, o None si el mensaje
            fue descartado o aún falta algún campo
        """
        self._messages_received += 1
        logger.debug(f"📨 MQTT message received on topic: {topic}")

        try:
            data = json.loads(payload)
            plugin = self.registry.get_for_topic(topic)
            fields = plugin.normalize_data(data)
            reading = self.cache.update(**fields)
        except (ValueError, PluginNotFoundError) as e:
            # json.JSONDecodeError e InvalidReadingError son ValueError
            self._messages_rejected += 1
            logger.error(f"❌ Error processing MQTT message on {topic}: {e}")
            return None

        if reading is None:
            logger.debug("Waiting for the remaining topics before a full reading")
            return None

        logger.info(f"📥 Ingested: {reading}")
        for callback in self._callbacks:
            try:
                callback(reading)
            except Exception as e:
                logger.exception(f"Error en reading callback: {e}")

        return reading

    def get_stats(self) -> dict:
        return {
            "messages_received": self._messages_received,
            "messages_rejected": self._messages_rejected,
            "callbacks": len(self._callbacks),
        }
