#!/usr/bin/env python3
"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                🔗 Hydro-Monitor Full Pipeline Integrator                     ║
║                    Demo: Layer 1 → Layer 2 → Layer 3                         ║
╚══════════════════════════════════════════════════════════════════════════════╝

Integra las 3 capas del sistema:
- Modo demo (por defecto): procesa una secuencia fija de lecturas y muestra
  qué notificaciones decide el debouncer.
- Modo --mqtt: sirve la API con el feed MQTT real conectado.

Usage:
    python run_pipeline.py
    python run_pipeline.py --mqtt
"""

import argparse
import os
from typing import List, Sequence

from action_layer.device_registry import DeviceRegistry
from action_layer.notification_dispatcher import AlertDispatcher
from action_layer.models import PushMessage, PushTicket, TicketStatus
from action_layer.pipeline import HydroMonitorPipeline
from action_layer.push_client import ExpoPushClient


class ConsolePushClient(ExpoPushClient):
    """Imprime los mensajes en lugar de enviarlos a Expo."""

    def send_chunk(self, chunk: Sequence[PushMessage]) -> List[PushTicket]:
        for message in chunk:
            print("\n" + "═" * 70)
            print(f"📱 [PUSH] {message.title}")
            print(f"   📞 Para: {message.to}")
            print(f"   📝 {message.body}")
            print("═" * 70)
        return [PushTicket(status=TicketStatus.OK, id=f"console-{i}") for i, _ in enumerate(chunk)]


def demo_pipeline():
    """Ejecuta una demostración del pipeline completo."""
    print("""
╔══════════════════════════════════════════════════════════════════════════════╗
║                🔗 Hydro-Monitor Full Pipeline Demo                           ║
║                    Layer 1 → Layer 2 → Layer 3                               ║
╚══════════════════════════════════════════════════════════════════════════════╝
    """)

    clock = {"now": 0}
    registry = DeviceRegistry()
    dispatcher = AlertDispatcher(registry, push_client=ConsolePushClient(), clock=lambda: clock["now"])
    pipeline = HydroMonitorPipeline(registry=registry, dispatcher=dispatcher)
    pipeline.registry.register("ExponentPushToken[demo-device-0001]")

    minute = 60 * 1000
    # (minuto, aire, humedad, agua)
    test_readings = [
        (0, 25.0, 60.0, 24.0),   # Primera lectura: todo notifica (Unknown → Optimal)
        (1, 25.5, 61.0, 24.2),   # Sin cambios: silencio
        (2, 31.0, 60.0, 24.1),   # Aire → Warning
        (3, 36.5, 58.0, 24.3),   # Aire → Critical
        (13, 37.0, 57.0, 24.5),  # Critical sostenido 10 min: silencio
        (34, 37.2, 57.0, 24.4),  # Critical sostenido 31 min: re-alerta
        (35, 26.0, 60.0, 24.0),  # Recuperación
    ]

    print("📊 Procesando lecturas a través del pipeline...\n")
    print("─" * 80)

    for i, (at, temperature, humidity, water_temp) in enumerate(test_readings, 1):
        clock["now"] = at * minute
        print(f"\n📥 Lectura #{i} (t={at}min): air={temperature}°C hum={humidity}% water={water_temp}°C")

        pipeline.ingest(temperature=temperature, humidity=humidity, water_temp=water_temp)
        pipeline.dispatcher.flush(timeout=5)

        reading = pipeline.feed.latest()
        print(f"   └─ Estados: {reading.statuses}")

    print("\n" + "─" * 80)
    stats = pipeline.get_stats()
    print("\n📈 ESTADÍSTICAS:")
    print(f"   ├─ Lecturas procesadas: {stats['pipeline']['total_processed']}")
    print(f"   ├─ Notificaciones decididas: {stats['alerts']['notifications_decided']}")
    print(f"   └─ Filas en historial: {pipeline.history.count()}")
    print("\n✅ Demo del pipeline completada.")

    pipeline.shutdown()
    return stats


def run_mqtt(host: str = "0.0.0.0", port: int = 8001):
    """
    Sirve la API con el feed MQTT conectado, hasta Ctrl+C.

    Los dispositivos registrados via HTTP reciben las alertas de las
    lecturas MQTT porque todo corre sobre el mismo pipeline.
    """
    import uvicorn

    os.environ["HYDRO_MQTT_ENABLED"] = "1"
    uvicorn.run("action_layer.api:app", host=host, port=port, log_level="info")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="🔗 Hydro-Monitor pipeline")
    parser.add_argument("--mqtt", action="store_true", help="Procesar el feed MQTT real")
    args = parser.parse_args()

    if args.mqtt:
        run_mqtt()
    else:
        demo_pipeline()
