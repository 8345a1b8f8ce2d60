"""
Plugins de tópicos MQTT del nodo sensor33.

- sensor33/air   → {"temperature": ..., "humidity": ...}
- sensor33/water → {"temperature": ...} (temperatura del agua)
"""

from typing import Any, Dict

from ingestion.models import InvalidReadingError
from ingestion.plugins.base import SensorPlugin


class AirTopicPlugin(SensorPlugin):
    """Sensor de aire (DHT): temperatura y humedad."""

    topic = "sensor33/air"

    @property
    def name(self) -> str:
        return "mqtt-air-plugin"

    def validate(self, raw_data: Any) -> bool:
        if not isinstance(raw_data, dict):
            return False
        # Basta con uno de los dos campos; el otro conserva su último valor
        present = [raw_data[k] for k in ("temperature", "humidity") if k in raw_data]
        return bool(present) and all(self._is_number(v) for v in present)

    def normalize_data(self, raw_data: Any) -> Dict[str, float]:
        if not self.validate(raw_data):
            raise InvalidReadingError(f"Invalid air payload: {raw_data!r}")
        return {k: float(raw_data[k]) for k in ("temperature", "humidity") if k in raw_data}


class WaterTopicPlugin(SensorPlugin):
    """Sensor sumergible (DS18B20): temperatura del agua."""

    topic = "sensor33/water"

    @property
    def name(self) -> str:
        return "mqtt-water-plugin"

    def validate(self, raw_data: Any) -> bool:
        return isinstance(raw_data, dict) and self._is_number(raw_data.get("temperature"))

    def normalize_data(self, raw_data: Any) -> Dict[str, float]:
        if not self.validate(raw_data):
            raise InvalidReadingError(f"Invalid water payload: {raw_data!r}")
        return {"water_temp": float(raw_data["temperature"])}
