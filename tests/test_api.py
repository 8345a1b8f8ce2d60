#!/usr/bin/env python3
"""Tests de la API HTTP (dispositivos, ingesta, historial y realtime)."""

import pytest
from fastapi.testclient import TestClient

from action_layer.api import app
from action_layer.models import PushTicket, TicketStatus
from action_layer.pipeline import HydroMonitorPipeline, get_pipeline
from action_layer.push_client import ExpoPushClient
from ingestion.mqtt_bridge import MqttIngestBridge


TOKEN = "ExponentPushToken[api-device-0001]"


class SilentPushClient(ExpoPushClient):

    def __init__(self):
        super().__init__()
        self.sent = []

    def send_chunk(self, chunk):
        self.sent.extend(chunk)
        return [PushTicket(status=TicketStatus.OK) for _ in chunk]


@pytest.fixture
def pipeline():
    pipeline = HydroMonitorPipeline(push_client=SilentPushClient())
    yield pipeline
    pipeline.shutdown()


@pytest.fixture
def client(pipeline, monkeypatch):
    monkeypatch.setenv("HYDRO_MQTT_ENABLED", "0")
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


class TestDeviceEndpoints:

    def test_register_device(self, client, pipeline):
        response = client.post("/api/register-device", json={"token": TOKEN})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Device registered for notifications"}
        assert TOKEN in pipeline.registry

    def test_register_twice_keeps_one_device(self, client, pipeline):
        client.post("/api/register-device", json={"token": TOKEN})
        client.post("/api/register-device", json={"token": TOKEN})

        assert client.get("/api/devices").json() == {"total": 1, "devices": [TOKEN]}

    def test_register_requires_token(self, client):
        response = client.post("/api/register-device", json={})

        assert response.status_code == 400
        assert response.json()["detail"] == "Push token is required"

    def test_register_rejects_invalid_token(self, client, pipeline):
        response = client.post("/api/register-device", json={"token": "not-a-token"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid push token"
        assert len(pipeline.registry) == 0

    def test_unregister_device(self, client, pipeline):
        client.post("/api/register-device", json={"token": TOKEN})

        response = client.request("DELETE", "/api/register-device", json={"token": TOKEN})

        assert response.status_code == 200
        assert response.json()["message"] == "Device unregistered"
        assert len(pipeline.registry) == 0

    def test_unregister_unknown_device(self, client):
        response = client.request("DELETE", "/api/register-device", json={"token": TOKEN})

        assert response.status_code == 404
        assert response.json()["detail"] == "Device not found"

    def test_reset_devices(self, client, pipeline):
        client.post("/api/register-device", json={"token": TOKEN})
        client.post("/api/post", json={"temperatureDHT": 40.0, "humidity": 50.0, "temperatureDS18B20": 25.0})

        response = client.post("/api/devices/reset")

        assert response.status_code == 200
        states = pipeline.registry.get(TOKEN).states.values()
        assert all(s.last_notified_at == 0 for s in states)


class TestIngestionEndpoints:

    def test_post_esp32_payload(self, client, pipeline):
        client.post("/api/register-device", json={"token": TOKEN})
        payload = {"temperatureDHT": 40.0, "humidity": 50.0, "temperatureDS18B20": 25.0}

        response = client.post("/api/post", json=payload)
        pipeline.dispatcher.flush(timeout=5)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Data inserted successfully"
        assert body["data"] == payload
        assert pipeline.history.count() == 1
        assert len(pipeline.dispatcher.push_client.sent) == 3

        notifications = client.get("/api/notifications").json()
        assert notifications["total"] == 3

    def test_post_invalid_payload(self, client, pipeline):
        payload = {"temperatureDHT": "hot", "humidity": 50.0}

        response = client.post("/api/post", json=payload)

        assert response.status_code == 400
        assert response.json()["detail"] == {"error": "Invalid data types", "received": payload}
        assert pipeline.history.count() == 0

    def test_post_normalized_reading(self, client):
        response = client.post("/api/data", json={"temperature": 25.0, "humidity": 60.0, "water_temp": 24.0})

        assert response.status_code == 200
        rows = client.get("/api/data").json()
        assert len(rows) == 1
        assert rows[0]["water_temp"] == 24.0

    def test_history(self, client):
        client.post("/api/data", json={"temperature": 25.0, "humidity": 60.0, "water_temp": 24.0})

        rows = client.get("/api/history", params={"range": "hour"}).json()

        assert isinstance(rows, list)
        assert len(rows) == 1
        assert rows[0]["temperature"] == 25.0
        assert set(rows[0]) == {"id", "timestamp", "temperature", "humidity", "water_temp"}

    def test_history_invalid_range(self, client):
        response = client.get("/api/history", params={"range": "year"})

        assert response.status_code == 400


class TestRealtimeEndpoints:

    def test_realtime_before_any_reading(self, client):
        rows = client.get("/api/realtime").json()

        assert len(rows) == 1
        assert rows[0]["temperature"] == 0
        assert rows[0]["connected"] is False

    def test_realtime_after_partial_update(self, client, pipeline):
        pipeline.ingest(temperature=26.5, humidity=58.0)

        row = client.get("/api/realtime").json()[0]

        assert row["temperature"] == 26.5
        assert row["humidity"] == 58.0
        assert row["water_temp"] == 0
        assert row["connected"] is True

    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert "alerts" in body["stats"]


class TestMqttFeed:
    """La API conecta el feed MQTT a su propio pipeline."""

    @pytest.fixture
    def started(self, monkeypatch):
        started = []
        monkeypatch.setattr(MqttIngestBridge, "start", lambda bridge: started.append(bridge))
        monkeypatch.setattr(MqttIngestBridge, "stop", lambda bridge: started.remove(bridge))
        return started

    @pytest.fixture
    def mqtt_client(self, pipeline, started, monkeypatch):
        monkeypatch.setenv("HYDRO_MQTT_ENABLED", "1")
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        with TestClient(app) as client:
            yield client
        app.dependency_overrides.clear()

    def test_bridge_runs_while_app_is_served(self, pipeline, started, monkeypatch):
        monkeypatch.setenv("HYDRO_MQTT_ENABLED", "1")
        app.dependency_overrides[get_pipeline] = lambda: pipeline

        with TestClient(app):
            assert len(started) == 1
            assert started[0].cache is pipeline.cache

        app.dependency_overrides.clear()
        assert started == []

    def test_mqtt_reading_alerts_device_registered_over_http(self, mqtt_client, pipeline):
        mqtt_client.post("/api/register-device", json={"token": TOKEN})
        bridge = app.state.mqtt_bridge

        bridge.handle_message("sensor33/air", b'{"temperature": 40.0, "humidity": 50.0}')
        bridge.handle_message("sensor33/water", b'{"temperature": 25.0}')
        pipeline.dispatcher.flush(timeout=5)

        assert len(pipeline.dispatcher.push_client.sent) == 3
        assert pipeline.history.count() == 1
        row = mqtt_client.get("/api/realtime").json()[0]
        assert (row["temperature"], row["humidity"], row["water_temp"]) == (40.0, 50.0, 25.0)

    def test_bridge_disabled(self, pipeline, started, monkeypatch):
        monkeypatch.delenv("HYDRO_MQTT_HOST", raising=False)
        monkeypatch.setenv("HYDRO_MQTT_ENABLED", "0")
        app.dependency_overrides[get_pipeline] = lambda: pipeline

        with TestClient(app):
            assert started == []
            assert app.state.mqtt_bridge is None

        app.dependency_overrides.clear()
