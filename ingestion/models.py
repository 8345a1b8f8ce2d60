#!/usr/bin/env python3
"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                   📊 Normalized Data Models - Hydro-Monitor                   ║
║                       Layer 1: Standard Data Format                           ║
╚══════════════════════════════════════════════════════════════════════════════╝

Modelos de datos normalizados que representan el formato estándar interno.
Todos los plugins convierten sus payloads a campos de SensorReading, que se
acumulan en la caché de última lectura hasta tener las tres métricas.

Author: Hydro-Monitor Team
"""

import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from intelligence_core.models import Metric


READING_FIELDS = ("temperature", "humidity", "water_temp")

# Segundos sin lecturas antes de considerar el feed desconectado
STALE_AFTER_SECONDS = 30.0


class InvalidReadingError(ValueError):
    """Excepción cuando un payload no contiene valores numéricos válidos."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidReadingError(f"{name} must be numeric, got {value!r}")
    if not math.isfinite(value):
        raise InvalidReadingError(f"{name} must be finite, got {value!r}")
    return float(value)


@dataclass(frozen=True)
class SensorReading:
    """
    📊 Lectura completa de la red de sensores.

    Attributes:
        temperature: Temperatura del aire (°C)
        humidity: Humedad relativa (%)
        water_temp: Temperatura del agua (°C)
        timestamp: Momento de la lectura (UTC)

    Example:
        >>> reading = SensorReading(temperature=25.0, humidity=60.0, water_temp=24.0)
        >>> reading.value_for(Metric.WATER_TEMP)
        24.0
    """
    temperature: float
    humidity: float
    water_temp: float
    timestamp: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        """Validación post-inicialización."""
        for name in READING_FIELDS:
            _as_number(name, getattr(self, name))
        if not isinstance(self.timestamp, datetime):
            raise InvalidReadingError("timestamp must be a datetime object")

    def value_for(self, metric: Metric) -> float:
        """Valor de la lectura para una métrica."""
        return getattr(self, metric.reading_field)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "water_temp": self.water_temp,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SensorReading":
        """
        Crea una instancia desde un diccionario.

        Raises:
            InvalidReadingError: Si falta un campo o no es numérico
        """
        values = {}
        for name in READING_FIELDS:
            if name not in data:
                raise InvalidReadingError(f"Missing field: {name}")
            values[name] = _as_number(name, data[name])

        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        elif timestamp is None:
            timestamp = utcnow()

        return cls(timestamp=timestamp, **values)

    def __str__(self) -> str:
        return (
            f"[{self.timestamp.strftime('%H:%M:%S')}] "
            f"air={self.temperature:.1f}°C hum={self.humidity:.1f}% water={self.water_temp:.1f}°C"
        )


class LatestReadingCache:
    """
    🗂️ Caché de la última lectura conocida.

    Los tópicos del sensor llegan por separado (aire y agua), así que cada
    actualización parcial se mezcla con lo ya conocido: un campo ausente
    conserva su último valor, nunca se asume cero.
    """

    def __init__(self, stale_after: float = STALE_AFTER_SECONDS):
        self.stale_after = stale_after
        self._values: Dict[str, Optional[float]] = {name: None for name in READING_FIELDS}
        self._timestamp: Optional[datetime] = None
        self._connected = False
        self._last_error: Optional[str] = None
        self._lock = threading.Lock()

    def update(self, **fields: Optional[float]) -> Optional[SensorReading]:
        """
        Mezcla campos parciales en la caché.

        Returns:
            SensorReading completa si ya se conocen las tres métricas, None si no
        """
        unknown = set(fields) - set(READING_FIELDS)
        if unknown:
            raise InvalidReadingError(f"Unknown fields: {', '.join(sorted(unknown))}")

        cleaned = {
            name: _as_number(name, value)
            for name, value in fields.items()
            if value is not None
        }

        with self._lock:
            self._values.update(cleaned)
            self._timestamp = utcnow()
            self._connected = True
            self._last_error = None
            return self._to_reading()

    def mark_error(self, error: str) -> None:
        """Registra un error del transporte y marca el feed como desconectado."""
        with self._lock:
            self._connected = False
            self._last_error = error

    def latest(self) -> Optional[SensorReading]:
        """Última lectura completa, o None si aún falta algún campo."""
        with self._lock:
            return self._to_reading()

    def is_stale(self, now: Optional[datetime] = None) -> bool:
        if self._timestamp is None:
            return True
        now = now or utcnow()
        return (now - self._timestamp).total_seconds() >= self.stale_after

    def snapshot(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Estado de la caché para el endpoint realtime."""
        with self._lock:
            stale = self.is_stale(now)
            if stale and self._timestamp is not None:
                self._connected = False
            return {
                **self._values,
                "timestamp": self._timestamp.isoformat() if self._timestamp else None,
                "connected": self._connected,
                "error": self._last_error,
            }

    def _to_reading(self) -> Optional[SensorReading]:
        if any(v is None for v in self._values.values()) or self._timestamp is None:
            return None
        return SensorReading(timestamp=self._timestamp, **self._values)
