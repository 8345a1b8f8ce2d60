#!/usr/bin/env python3
"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                    🎯 Hydro-Monitor API                                      ║
║                      Layer 3: Dashboard & Notifications                      ║
╚══════════════════════════════════════════════════════════════════════════════╝

API FastAPI para:
- Registrar / eliminar dispositivos de notificaciones push
- Servir la última lectura y el stream SSE al Dashboard
- Montar los endpoints de ingesta e historial (Capa 1)

Usage:
    python -m action_layer.api

    o con uvicorn:
    uvicorn action_layer.api:app --reload --port 8001

Author: Hydro-Monitor Team
"""

import logging
import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from ingestion.api import router as ingestion_router
from ingestion.config import MqttSettings
from ingestion.mqtt_bridge import MqttIngestBridge
from .pipeline import HydroMonitorPipeline, get_pipeline


# ═══════════════════════════════════════════════════════════════════════════════
# Configuración de Logging
# ═══════════════════════════════════════════════════════════════════════════════

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s"
)
logger = logging.getLogger("action_layer.api")


# ═══════════════════════════════════════════════════════════════════════════════
# FastAPI App
# ═══════════════════════════════════════════════════════════════════════════════

def _resolve_pipeline(app: FastAPI) -> HydroMonitorPipeline:
    """El mismo pipeline que reciben los endpoints (respeta dependency_overrides)."""
    return app.dependency_overrides.get(get_pipeline, get_pipeline)()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Conecta el feed MQTT al pipeline de la API mientras el servidor corre.

    Se activa con HYDRO_MQTT_ENABLED=1 (o definiendo HYDRO_MQTT_HOST).
    """
    settings = MqttSettings.from_env()
    bridge: Optional[MqttIngestBridge] = None

    if settings.enabled:
        pipeline = _resolve_pipeline(app)
        bridge = MqttIngestBridge(settings, cache=pipeline.cache)
        bridge.add_callback(pipeline.process_reading)
        bridge.start()
    else:
        logger.info("MQTT feed disabled, accepting HTTP ingestion only")

    app.state.mqtt_bridge = bridge
    try:
        yield
    finally:
        if bridge is not None:
            bridge.stop()
        app.state.mqtt_bridge = None


app = FastAPI(
    title="🌱 Hydro-Monitor API",
    description="Hydroponic telemetry dashboard & push alerts",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ingestion_router)


# ═══════════════════════════════════════════════════════════════════════════════
# Pydantic Models
# ═══════════════════════════════════════════════════════════════════════════════

class DeviceTokenInput(BaseModel):
    """Token push enviado por la app móvil."""
    token: Optional[str] = None


class DeviceResponse(BaseModel):
    success: bool
    message: str


class RealtimeReading(BaseModel):
    id: str
    temperature: float
    humidity: float
    water_temp: float
    timestamp: str
    connected: bool
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    stats: Dict[str, Any]


def _require_token(data: DeviceTokenInput) -> str:
    if not data.token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Push token is required",
        )
    return data.token


# ═══════════════════════════════════════════════════════════════════════════════
# Endpoints - Health
# ═══════════════════════════════════════════════════════════════════════════════

@app.get("/", tags=["Health"])
async def root():
    return {
        "service": "Hydro-Monitor API",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "realtime": "/api/realtime",
            "stream": "/api/stream",
            "register": "/api/register-device",
            "history": "/api/history",
        },
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check(pipeline: HydroMonitorPipeline = Depends(get_pipeline)):
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now().isoformat(),
        stats=pipeline.get_stats(),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Endpoints - Devices
# ═══════════════════════════════════════════════════════════════════════════════

@app.post("/api/register-device", response_model=DeviceResponse, tags=["Devices"])
def register_device(
    data: DeviceTokenInput,
    pipeline: HydroMonitorPipeline = Depends(get_pipeline),
):
    """📲 Registra un dispositivo para notificaciones push."""
    token = _require_token(data)

    if not pipeline.registry.register(token):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid push token",
        )

    return DeviceResponse(success=True, message="Device registered for notifications")


@app.delete("/api/register-device", response_model=DeviceResponse, tags=["Devices"])
def unregister_device(
    data: DeviceTokenInput,
    pipeline: HydroMonitorPipeline = Depends(get_pipeline),
):
    """🗑️ Elimina un dispositivo registrado."""
    token = _require_token(data)

    if not pipeline.registry.unregister(token):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Device not found")

    return DeviceResponse(success=True, message="Device unregistered")


@app.get("/api/devices", tags=["Devices"])
def list_devices(pipeline: HydroMonitorPipeline = Depends(get_pipeline)):
    tokens = pipeline.registry.list()
    return {"total": len(tokens), "devices": tokens}


@app.post("/api/devices/reset", response_model=DeviceResponse, tags=["Admin"])
def reset_devices(pipeline: HydroMonitorPipeline = Depends(get_pipeline)):
    """🔄 Reinicia el estado de debounce de todos los dispositivos."""
    pipeline.registry.reset_all()
    return DeviceResponse(success=True, message="All notification states reset")


@app.get("/api/notifications", tags=["Devices"])
def get_notifications(
    limit: int = Query(50, ge=1, le=200),
    pipeline: HydroMonitorPipeline = Depends(get_pipeline),
):
    """🔔 Historial de notificaciones decididas."""
    notifications = pipeline.dispatcher.get_notifications(limit)
    return {"total": len(notifications), "notifications": notifications}


# ═══════════════════════════════════════════════════════════════════════════════
# Endpoints - Real-time
# ═══════════════════════════════════════════════════════════════════════════════

@app.get("/api/realtime", response_model=List[RealtimeReading], tags=["Real-time"])
def get_realtime(pipeline: HydroMonitorPipeline = Depends(get_pipeline)):
    """
    📡 Última lectura conocida.

    connected pasa a False si no llegan datos en 30 segundos.
    Los campos aún desconocidos se informan como 0.
    """
    snapshot = pipeline.cache.snapshot()
    return [
        RealtimeReading(
            id=str(int(datetime.now().timestamp() * 1000)),
            temperature=snapshot["temperature"] or 0,
            humidity=snapshot["humidity"] or 0,
            water_temp=snapshot["water_temp"] or 0,
            timestamp=snapshot["timestamp"] or datetime.now().isoformat(),
            connected=snapshot["connected"],
            error=snapshot["error"],
        )
    ]


async def event_generator(pipeline: HydroMonitorPipeline, heartbeat: float = 30.0):
    """Generador de eventos SSE."""
    queue = pipeline.feed.subscribe()

    try:
        yield f"event: connected\ndata: {json.dumps({'type': 'connected', 'timestamp': datetime.now().isoformat()})}\n\n"

        while True:
            try:
                reading = await asyncio.wait_for(queue.get(), timeout=heartbeat)
                yield f"event: reading\ndata: {json.dumps(reading.to_dict())}\n\n"
            except asyncio.TimeoutError:
                yield f"event: heartbeat\ndata: {json.dumps({'timestamp': datetime.now().isoformat()})}\n\n"

    finally:
        pipeline.feed.unsubscribe(queue)


@app.get("/api/stream", tags=["Real-time"])
async def stream_readings(pipeline: HydroMonitorPipeline = Depends(get_pipeline)):
    """
    📡 Stream de lecturas via Server-Sent Events.

    Eventos:
    - `connected`: Conexión establecida
    - `reading`: Nueva lectura procesada
    - `heartbeat`: Keep-alive cada 30 segundos
    """
    return StreamingResponse(
        event_generator(pipeline),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Main Entry Point
# ═══════════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    import uvicorn

    print("""
╔══════════════════════════════════════════════════════════════════════════════╗
║                         🌱 Hydro-Monitor API                                 ║
║                      Layer 3: Dashboard & Notifications                      ║
╚══════════════════════════════════════════════════════════════════════════════╝
    """)

    uvicorn.run(
        "action_layer.api:app",
        host="0.0.0.0",
        port=8001,
        reload=True,
        log_level="info",
    )
