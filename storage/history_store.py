"""
Historial persistente de lecturas (SQLite).
Guarda cada lectura procesada y la consulta por rango de tiempo.
"""

import logging
import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from ingestion.models import SensorReading, utcnow


logger = logging.getLogger(__name__)


# Rangos soportados por el dashboard
HISTORY_RANGES: Dict[str, timedelta] = {
    "minute": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
    "month": timedelta(days=30),
}


# Máximo de filas por consulta de historial
HISTORY_LIMIT = 100


class InvalidRangeError(ValueError):
    """Rango de historial no soportado."""
    pass


class HistoryStore:
    """
    🗄️ Almacén de lecturas hidropónicas.

    Ejemplo:
        store = HistoryStore(":memory:")
        store.insert(reading)
        rows = store.history("hour")
    """

    def __init__(self, db_path: str = "hydro_history.db"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._create_schema()

    def _create_schema(self) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS hydroponic_data (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp REAL NOT NULL,
                    temperature REAL NOT NULL,
                    humidity REAL NOT NULL,
                    water_temp REAL NOT NULL
                )
                """
            )
            self._conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_hydroponic_data_ts ON hydroponic_data (timestamp)"
            )

    def insert(self, reading: SensorReading) -> int:
        """Guarda una lectura y retorna su id."""
        ts = reading.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)

        with self._lock, self._conn:
            cursor = self._conn.execute(
                "INSERT INTO hydroponic_data (timestamp, temperature, humidity, water_temp) "
                "VALUES (?, ?, ?, ?)",
                (ts.timestamp(), reading.temperature, reading.humidity, reading.water_temp),
            )
        return cursor.lastrowid

    def since(self, start: datetime, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Lecturas desde `start`, ordenadas por tiempo ascendente."""
        query = "SELECT * FROM hydroponic_data WHERE timestamp >= ? ORDER BY timestamp ASC"
        params: tuple = (start.timestamp(),)
        if limit is not None:
            query += " LIMIT ?"
            params += (limit,)

        with self._lock:
            rows = self._conn.execute(query, params).fetchall()
        return [self._row_to_dict(row) for row in rows]

    def recent(self, seconds: float = 10, limit: int = 10, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Últimas lecturas de una ventana corta (vista 'data' del dashboard)."""
        now = now or utcnow()
        return self.since(now - timedelta(seconds=seconds), limit=limit)

    def history(
        self,
        range_name: str = "minute",
        now: Optional[datetime] = None,
        limit: Optional[int] = HISTORY_LIMIT,
    ) -> List[Dict[str, Any]]:
        """
        Historial de un rango: minute, hour, day, week o month.

        Retorna como máximo `limit` filas, las más antiguas del rango primero.

        Raises:
            InvalidRangeError: Si el rango no es soportado
        """
        if range_name not in HISTORY_RANGES:
            raise InvalidRangeError(
                f"Invalid range: {range_name}. Must be one of {', '.join(HISTORY_RANGES)}"
            )
        now = now or utcnow()
        return self.since(now - HISTORY_RANGES[range_name], limit=limit)

    def count(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM hydroponic_data").fetchone()[0]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @staticmethod
    def _row_to_dict(row: sqlite3.Row) -> Dict[str, Any]:
        return {
            "id": row["id"],
            "timestamp": datetime.fromtimestamp(row["timestamp"], tz=timezone.utc).isoformat(),
            "temperature": row["temperature"],
            "humidity": row["humidity"],
            "water_temp": row["water_temp"],
        }
