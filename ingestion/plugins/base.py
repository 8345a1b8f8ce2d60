#!/usr/bin/env python3
"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                    🔌 Sensor Plugin Base - Hydro-Monitor                     ║
║                         Layer 1: Universal Plugin Layer                       ║
╚══════════════════════════════════════════════════════════════════════════════╝

Clase base abstracta que define el contrato para todos los plugins de sensores.
Cada fuente de datos (tópico MQTT, POST HTTP del ESP32, etc.) implementa esta
interfaz y produce campos parciales de SensorReading.

Author: Hydro-Monitor Team
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class SensorPlugin(ABC):
    """
    🔌 Clase base abstracta para plugins de sensores.

    Cada plugin es responsable de:
    1. Validar que el payload recibido sea procesable
    2. Normalizar los datos crudos a campos de SensorReading
       (temperature, humidity, water_temp); puede devolver solo un subconjunto

    Example:
        >>> class WaterPlugin(SensorPlugin):
        ...     name = "water"
        ...     def validate(self, raw_data):
        ...         return "temperature" in raw_data
        ...     def normalize_data(self, raw_data):
        ...         return {"water_temp": raw_data["temperature"]}
    """

    # Tópico MQTT que atiende el plugin (None si no viene de MQTT)
    topic: Optional[str] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Identificador único del plugin."""
        pass

    @property
    def version(self) -> str:
        return "1.0.0"

    @abstractmethod
    def validate(self, raw_data: Any) -> bool:
        """
        Valida que el payload recibido sea procesable por este plugin.

        Returns:
            True si el payload puede ser normalizado
        """
        pass

    @abstractmethod
    def normalize_data(self, raw_data: Any) -> Dict[str, float]:
        """
        Transforma datos crudos a campos de SensorReading.

        Raises:
            InvalidReadingError: Si los datos no pueden ser normalizados
        """
        pass

    @staticmethod
    def _is_number(value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name='{self.name}', version='{self.version}')>"
