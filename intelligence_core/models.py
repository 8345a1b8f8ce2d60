"""
Modelos de datos para Intelligence Core.
Define métricas, estados de severidad y el estado de debounce por métrica.
"""

from dataclasses import dataclass
from enum import Enum


class UnknownMetricError(ValueError):
    """Excepción cuando se pide una métrica que no existe."""
    pass


class Metric(Enum):
    """Métricas monitoreadas por la red de sensores hidropónicos."""
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    WATER_TEMP = "waterTemp"

    @property
    def label(self) -> str:
        """Nombre legible para notificaciones."""
        labels = {
            "temperature": "Air Temperature",
            "humidity": "Humidity",
            "waterTemp": "Water Temperature",
        }
        return labels[self.value]

    @property
    def unit(self) -> str:
        """Unidad de medida de la métrica."""
        return "%" if self is Metric.HUMIDITY else "°C"

    @property
    def reading_field(self) -> str:
        """Campo de SensorReading que contiene la métrica."""
        return "water_temp" if self is Metric.WATER_TEMP else self.value

    @classmethod
    def parse(cls, name: str) -> "Metric":
        """Acepta tanto el nombre de métrica como el campo de la lectura."""
        for metric in cls:
            if name in (metric.value, metric.reading_field, metric.name):
                return metric
        raise UnknownMetricError(f"Unknown metric: {name}")


class MetricStatus(Enum):
    """
    Severidad de una métrica frente a sus bandas.

    UNKNOWN solo existe como estado inicial del debounce: nunca es el
    resultado de una clasificación.
    """
    OPTIMAL = "Optimal"
    WARNING = "Warning"
    CRITICAL = "Critical"
    UNKNOWN = "Unknown"

    @property
    def emoji(self) -> str:
        emojis = {
            "Optimal": "🟢",
            "Warning": "🟡",
            "Critical": "🔴",
        }
        return emojis.get(self.value, "⚪")

    @property
    def priority(self) -> int:
        """Prioridad numérica (mayor = más urgente)."""
        priorities = {"Optimal": 1, "Warning": 2, "Critical": 3}
        return priorities.get(self.value, 0)


@dataclass(frozen=True)
class DebounceState:
    """
    Registro de la última notificación enviada para una métrica.

    last_status y last_notified_at se reemplazan siempre juntos:
    el registro es inmutable y se sustituye completo.
    """
    last_status: MetricStatus = MetricStatus.UNKNOWN
    last_notified_at: int = 0  # epoch millis
