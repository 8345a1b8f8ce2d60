"""
Configuración de la Capa 1: broker MQTT e historial.
Los valores se leen de variables de entorno HYDRO_* (o de un archivo .env).
"""

import os
import uuid
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv


DEFAULT_TOPICS = ["sensor33/air", "sensor33/water"]

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class MqttSettings:
    """Conexión al broker del nodo sensor."""
    host: str = "localhost"
    port: int = 1883
    username: str = ""
    password: str = ""
    client_id: str = field(default_factory=lambda: f"hydro-monitor-{uuid.uuid4().hex[:8]}")
    topics: List[str] = field(default_factory=lambda: list(DEFAULT_TOPICS))
    keepalive: int = 60
    # La API solo se suscribe al broker si está habilitado
    enabled: bool = False

    @classmethod
    def from_env(cls) -> "MqttSettings":
        load_dotenv()
        topics = os.getenv("HYDRO_MQTT_TOPICS")
        host = os.getenv("HYDRO_MQTT_HOST")
        enabled = os.getenv("HYDRO_MQTT_ENABLED")
        return cls(
            host=host or "localhost",
            port=int(os.getenv("HYDRO_MQTT_PORT", "1883")),
            username=os.getenv("HYDRO_MQTT_USERNAME", ""),
            password=os.getenv("HYDRO_MQTT_PASSWORD", ""),
            topics=[t.strip() for t in topics.split(",") if t.strip()] if topics else list(DEFAULT_TOPICS),
            enabled=enabled.strip().lower() in _TRUE_VALUES if enabled is not None else bool(host),
        )


@dataclass
class HistorySettings:
    """Ubicación de la base SQLite del historial."""
    db_path: str = "hydro_history.db"

    @classmethod
    def from_env(cls) -> "HistorySettings":
        load_dotenv()
        return cls(db_path=os.getenv("HYDRO_HISTORY_DB", "hydro_history.db"))
