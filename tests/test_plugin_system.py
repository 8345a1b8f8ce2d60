#!/usr/bin/env python3
"""Tests de la Capa 1: plugins, registro, caché y puente MQTT."""

import json
from datetime import timedelta

import pytest

from ingestion.config import MqttSettings
from ingestion.models import InvalidReadingError, LatestReadingCache, SensorReading, utcnow
from ingestion.mqtt_bridge import MqttIngestBridge
from ingestion.plugins.http_json_plugin import Esp32JsonPlugin, ReadingJsonPlugin
from ingestion.plugins.mqtt_topic_plugins import AirTopicPlugin, WaterTopicPlugin
from ingestion.registry import PluginNotFoundError, PluginRegistry, get_default_registry
from intelligence_core.models import Metric


def test_sensor_reading_from_dict():
    reading = SensorReading.from_dict({
        "temperature": 25,
        "humidity": 60.5,
        "water_temp": 24.0,
        "timestamp": "2025-12-18T00:53:11",
    })

    assert reading.temperature == 25.0
    assert reading.value_for(Metric.WATER_TEMP) == 24.0
    assert reading.to_dict()["timestamp"] == "2025-12-18T00:53:11"


@pytest.mark.parametrize("payload", [
    {},
    {"temperature": 25.0, "humidity": 60.0},
    {"temperature": "hot", "humidity": 60.0, "water_temp": 24.0},
    {"temperature": True, "humidity": 60.0, "water_temp": 24.0},
    {"temperature": float("nan"), "humidity": 60.0, "water_temp": 24.0},
])
def test_sensor_reading_rejects_invalid(payload):
    with pytest.raises(InvalidReadingError):
        SensorReading.from_dict(payload)


def test_esp32_plugin():
    """Normaliza el payload del firmware a campos de lectura."""
    plugin = Esp32JsonPlugin()
    payload = {"temperatureDHT": 26.4, "humidity": 61, "temperatureDS18B20": 23.9}

    assert plugin.validate(payload)
    assert plugin.normalize_data(payload) == {"temperature": 26.4, "humidity": 61.0, "water_temp": 23.9}


def test_invalid_payloads():
    plugin = Esp32JsonPlugin()
    invalid_payloads = [
        {},
        [1, 2, 3],
        {"temperatureDHT": 26.4, "humidity": 61},
        {"temperatureDHT": "26.4", "humidity": 61, "temperatureDS18B20": 23.9},
    ]

    for payload in invalid_payloads:
        assert not plugin.validate(payload), f"Payload debería ser inválido: {payload}"
        with pytest.raises(InvalidReadingError):
            plugin.normalize_data(payload)

    assert not ReadingJsonPlugin().validate({"temperature": 1, "humidity": 2})


def test_topic_plugins():
    air = AirTopicPlugin()
    water = WaterTopicPlugin()

    assert air.normalize_data({"temperature": 25.0, "humidity": 55.0}) == {"temperature": 25.0, "humidity": 55.0}
    assert air.normalize_data({"humidity": 55.0}) == {"humidity": 55.0}
    assert water.normalize_data({"temperature": 22.5}) == {"water_temp": 22.5}
    assert not air.validate({"pressure": 1013})
    assert not water.validate({"temperature": None})


def test_plugin_registry():
    registry = PluginRegistry()
    registry.register(WaterTopicPlugin())

    assert "mqtt-water-plugin" in registry
    assert len(registry) == 1
    assert registry.get_for_topic("sensor33/water").name == "mqtt-water-plugin"
    assert registry.topics() == ["sensor33/water"]

    with pytest.raises(ValueError):
        registry.register(WaterTopicPlugin())
    with pytest.raises(PluginNotFoundError):
        registry.get("missing")
    with pytest.raises(PluginNotFoundError):
        registry.get_for_topic("sensor33/ph")


def test_default_registry_topics():
    registry = get_default_registry()
    assert set(registry.topics()) == {"sensor33/air", "sensor33/water"}
    assert "esp32-json-plugin" in registry


class TestLatestReadingCache:

    def test_partial_update_waits_for_all_fields(self):
        cache = LatestReadingCache()

        assert cache.update(temperature=25.0, humidity=60.0) is None
        assert cache.latest() is None

        reading = cache.update(water_temp=24.0)
        assert reading == SensorReading(25.0, 60.0, 24.0, reading.timestamp)

    def test_absent_fields_keep_last_value(self):
        """Un campo ausente conserva el último valor, nunca cero."""
        cache = LatestReadingCache()
        cache.update(temperature=25.0, humidity=60.0, water_temp=24.0)

        reading = cache.update(water_temp=31.0)

        assert reading.temperature == 25.0
        assert reading.humidity == 60.0
        assert reading.water_temp == 31.0

    def test_invalid_update_leaves_cache_untouched(self):
        cache = LatestReadingCache()
        cache.update(temperature=25.0, humidity=60.0, water_temp=24.0)

        with pytest.raises(InvalidReadingError):
            cache.update(temperature=26.0, humidity="wet")

        assert cache.latest().temperature == 25.0

    def test_snapshot_marks_stale_feed_disconnected(self):
        cache = LatestReadingCache(stale_after=30)
        cache.update(temperature=25.0)

        assert cache.snapshot()["connected"] is True
        later = utcnow() + timedelta(seconds=31)
        snapshot = cache.snapshot(now=later)
        assert snapshot["connected"] is False
        assert snapshot["humidity"] is None

    def test_mark_error(self):
        cache = LatestReadingCache()
        cache.mark_error("broker down")

        snapshot = cache.snapshot()
        assert snapshot["connected"] is False
        assert snapshot["error"] == "broker down"


class TestMqttIngestBridge:

    @pytest.fixture
    def bridge(self):
        return MqttIngestBridge()

    def test_full_reading_after_both_topics(self, bridge):
        received = []
        bridge.add_callback(received.append)

        assert bridge.handle_message("sensor33/air", json.dumps({"temperature": 40.0, "humidity": 50.0}).encode()) is None
        reading = bridge.handle_message("sensor33/water", b'{"temperature": 25.0}')

        assert received == [reading]
        assert (reading.temperature, reading.humidity, reading.water_temp) == (40.0, 50.0, 25.0)

    def test_every_later_message_emits_merged_reading(self, bridge):
        received = []
        bridge.add_callback(received.append)
        bridge.handle_message("sensor33/air", b'{"temperature": 25.0, "humidity": 60.0}')
        bridge.handle_message("sensor33/water", b'{"temperature": 24.0}')

        bridge.handle_message("sensor33/water", b'{"temperature": 24.5}')

        assert len(received) == 2
        assert received[-1].temperature == 25.0
        assert received[-1].water_temp == 24.5

    @pytest.mark.parametrize("topic, payload", [
        ("sensor33/air", b"not json"),
        ("sensor33/air", b'{"temperature": "hot"}'),
        ("sensor33/unknown", b'{"temperature": 20.0}'),
        ("sensor33/water", b"[1, 2]"),
    ])
    def test_bad_messages_are_dropped(self, bridge, topic, payload):
        assert bridge.handle_message(topic, payload) is None
        assert bridge.get_stats()["messages_rejected"] == 1

    def test_callback_errors_do_not_propagate(self, bridge):
        def broken(reading):
            raise RuntimeError("boom")

        received = []
        bridge.add_callback(broken)
        bridge.add_callback(received.append)

        bridge.handle_message("sensor33/air", b'{"temperature": 25.0, "humidity": 60.0}')
        bridge.handle_message("sensor33/water", b'{"temperature": 24.0}')

        assert len(received) == 1


class TestMqttSettings:

    def test_host_enables_feed(self, monkeypatch):
        monkeypatch.delenv("HYDRO_MQTT_ENABLED", raising=False)
        monkeypatch.setenv("HYDRO_MQTT_HOST", "broker.local")
        monkeypatch.setenv("HYDRO_MQTT_TOPICS", "sensor33/air, sensor33/water")

        settings = MqttSettings.from_env()

        assert settings.enabled
        assert settings.host == "broker.local"
        assert settings.topics == ["sensor33/air", "sensor33/water"]

    def test_explicit_flag_wins(self, monkeypatch):
        monkeypatch.setenv("HYDRO_MQTT_HOST", "broker.local")
        monkeypatch.setenv("HYDRO_MQTT_ENABLED", "false")

        assert not MqttSettings.from_env().enabled
