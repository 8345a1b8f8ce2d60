#!/usr/bin/env python3
"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                  🌐 HTTP-JSON Plugins - Hydro-Monitor                        ║
║                    Layer 1: ESP32 / Dashboard Adapters                        ║
╚══════════════════════════════════════════════════════════════════════════════╝

Plugins para recibir lecturas completas via HTTP/JSON.
- Esp32JsonPlugin: payload crudo del firmware (DHT + DS18B20)
- ReadingJsonPlugin: payload ya normalizado {temperature, humidity, water_temp}

Author: Hydro-Monitor Team
"""

from typing import Any, Dict

from ingestion.models import InvalidReadingError
from ingestion.plugins.base import SensorPlugin


class Esp32JsonPlugin(SensorPlugin):
    """
    🌐 Plugin para el POST del ESP32.

    Payload esperado:
        {
            "temperatureDHT": 26.4,
            "humidity": 61.0,
            "temperatureDS18B20": 23.9
        }
    """

    FIELD_MAP = {
        "temperatureDHT": "temperature",
        "humidity": "humidity",
        "temperatureDS18B20": "water_temp",
    }

    @property
    def name(self) -> str:
        return "esp32-json-plugin"

    def validate(self, raw_data: Any) -> bool:
        if not isinstance(raw_data, dict):
            return False
        return all(self._is_number(raw_data.get(key)) for key in self.FIELD_MAP)

    def normalize_data(self, raw_data: Any) -> Dict[str, float]:
        if not self.validate(raw_data):
            raise InvalidReadingError("Invalid data types")
        return {target: float(raw_data[source]) for source, target in self.FIELD_MAP.items()}


class ReadingJsonPlugin(SensorPlugin):
    """🌐 Plugin para lecturas ya normalizadas (API de datos)."""

    REQUIRED_FIELDS = ("temperature", "humidity", "water_temp")

    @property
    def name(self) -> str:
        return "reading-json-plugin"

    def validate(self, raw_data: Any) -> bool:
        if not isinstance(raw_data, dict):
            return False
        return all(self._is_number(raw_data.get(key)) for key in self.REQUIRED_FIELDS)

    def normalize_data(self, raw_data: Any) -> Dict[str, float]:
        if not self.validate(raw_data):
            raise InvalidReadingError("Invalid data")
        return {key: float(raw_data[key]) for key in self.REQUIRED_FIELDS}
