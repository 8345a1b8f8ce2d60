#!/usr/bin/env python3
"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                    🚀 Ingestion API - Hydro-Monitor                          ║
║                      Layer 1: HTTP Endpoints                                  ║
╚══════════════════════════════════════════════════════════════════════════════╝

Endpoints HTTP de la Capa 1:
- POST /api/post     payload crudo del ESP32
- POST /api/data     lectura normalizada
- GET  /api/data     lecturas de los últimos 10 segundos
- GET  /api/history  historial por rango (minute|hour|day|week|month)

El router se monta en la app principal (action_layer.api).

Author: Hydro-Monitor Team
"""

import logging
from datetime import datetime
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from action_layer.pipeline import HydroMonitorPipeline, get_pipeline
from ingestion.models import InvalidReadingError
from ingestion.plugins.base import SensorPlugin
from ingestion.plugins.http_json_plugin import Esp32JsonPlugin, ReadingJsonPlugin
from storage.history_store import InvalidRangeError


logger = logging.getLogger("ingestion.api")

router = APIRouter(prefix="/api", tags=["Ingestion"])

_esp32_plugin = Esp32JsonPlugin()
_reading_plugin = ReadingJsonPlugin()


# ═══════════════════════════════════════════════════════════════════════════════
# Pydantic Models
# ═══════════════════════════════════════════════════════════════════════════════

class IngestResponse(BaseModel):
    """Respuesta de la API de ingesta."""
    message: str
    data: Dict[str, Any]
    timestamp: str


class HistoryRow(BaseModel):
    """Fila del historial tal como la consume el Dashboard."""
    id: int
    timestamp: str
    temperature: float
    humidity: float
    water_temp: float


# ═══════════════════════════════════════════════════════════════════════════════
# Endpoints
# ═══════════════════════════════════════════════════════════════════════════════

def _ingest(plugin: SensorPlugin, payload: Any, pipeline: HydroMonitorPipeline) -> IngestResponse:
    if not plugin.validate(payload):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid data types", "received": payload},
        )

    try:
        fields = plugin.normalize_data(payload)
        pipeline.ingest(**fields)
    except InvalidReadingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info(f"📥 Ingested via {plugin.name}: {fields}")
    return IngestResponse(
        message="Data inserted successfully",
        data=payload,
        timestamp=datetime.now().isoformat(),
    )


@router.post("/post", response_model=IngestResponse)
def ingest_esp32(
    payload: Dict[str, Any],
    pipeline: HydroMonitorPipeline = Depends(get_pipeline),
):
    """
    🔌 Recibe el payload del ESP32.

    Formato: {"temperatureDHT": float, "humidity": float, "temperatureDS18B20": float}
    """
    return _ingest(_esp32_plugin, payload, pipeline)


@router.post("/data", response_model=IngestResponse)
def ingest_reading(
    payload: Dict[str, Any],
    pipeline: HydroMonitorPipeline = Depends(get_pipeline),
):
    """🔌 Recibe una lectura ya normalizada {temperature, humidity, water_temp}."""
    return _ingest(_reading_plugin, payload, pipeline)


@router.get("/data", response_model=List[HistoryRow])
def get_recent_data(pipeline: HydroMonitorPipeline = Depends(get_pipeline)):
    """📈 Lecturas de los últimos 10 segundos (máximo 10)."""
    return pipeline.history.recent(seconds=10, limit=10)


@router.get("/history", response_model=List[HistoryRow])
def get_history(
    range: str = Query("minute", description="minute, hour, day, week o month"),
    pipeline: HydroMonitorPipeline = Depends(get_pipeline),
):
    """📊 Historial ordenado por tiempo para el rango pedido (máximo 100 filas)."""
    try:
        rows = pipeline.history.history(range)
    except InvalidRangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return rows
