#!/usr/bin/env python3
"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                         🌱 Hydro Sensor Agent 🌱                             ║
║                   Virtual ESP32 node for Hydro-Monitor                       ║
╚══════════════════════════════════════════════════════════════════════════════╝

Agente que genera lecturas de aire y agua en tiempo real.
Simula ondas diarias de temperatura y humedad con ruido, y permite inyectar
anomalías (ola de calor) para probar las alertas push.

Puede enviar cada lectura al endpoint HTTP del ESP32 (/api/post) o
publicarla en los tópicos MQTT del nodo (sensor33/air y sensor33/water).

Author: Hydro-Monitor Team
"""

import argparse
import json
import logging
import math
import random
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

import requests


logger = logging.getLogger(__name__)


@dataclass
class SensorConfig:
    """Configuración del nodo virtual."""
    # Ondas normales (centro ± amplitud)
    base_temp: float = 24.0
    temp_amplitude: float = 4.0
    base_humidity: float = 60.0
    humidity_amplitude: float = 12.0
    base_water_temp: float = 24.0
    water_amplitude: float = 2.0
    noise_range: float = 0.6
    wave_period: float = 60.0

    # Anomalía: ola de calor que lleva aire y agua a zona crítica
    anomaly_temp: float = 38.0
    anomaly_water_temp: float = 31.5
    auto_anomaly_probability: float = 0.02

    # Conexión
    api_endpoint: str = "http://localhost:8001/api/post"
    mqtt_host: Optional[str] = None
    mqtt_port: int = 1883
    interval_seconds: float = 2.0
    send_to_api: bool = False


class HydroSensorAgent:
    """
    🤖 Nodo sensor virtual (DHT + DS18B20).

    Ejemplo:
        agent = HydroSensorAgent(SensorConfig(send_to_api=True))
        agent.inject_anomaly(duration=5)
        agent.run_once()
    """

    def __init__(self, config: Optional[SensorConfig] = None, mqtt_client=None):
        self.config = config or SensorConfig()
        self.step = 0
        self.running = False
        self.anomaly_duration = 0
        self._callbacks: List[Callable[[Dict[str, float]], None]] = []
        self._mqtt = mqtt_client

        # Estadísticas
        self.total_readings = 0
        self.total_anomalies = 0
        self.start_time: Optional[datetime] = None

    def _wave(self, base: float, amplitude: float, phase: float = 0.0) -> float:
        wave_value = math.sin(self.step / self.config.wave_period * 2 * math.pi + phase)
        return base + amplitude * wave_value + random.gauss(0, self.config.noise_range / 2)

    def inject_anomaly(self, duration: int = 1) -> None:
        """Inyecta una anomalía por un número de lecturas."""
        self.anomaly_duration = duration
        logger.warning(f"🔥 [HydroSensor] Anomalía inyectada - {duration} lectura(s)")

    def generate_reading(self) -> Dict[str, float]:
        """
        Genera una lectura completa.

        Returns:
            {"temperature", "humidity", "water_temp"}
        """
        is_anomaly = False
        if self.anomaly_duration > 0:
            self.anomaly_duration -= 1
            is_anomaly = True
        elif random.random() < self.config.auto_anomaly_probability:
            is_anomaly = True

        if is_anomaly:
            self.total_anomalies += 1
            temperature = self.config.anomaly_temp + random.uniform(-1, 1)
            water_temp = self.config.anomaly_water_temp + random.uniform(-0.5, 0.5)
        else:
            temperature = self._wave(self.config.base_temp, self.config.temp_amplitude)
            water_temp = self._wave(self.config.base_water_temp, self.config.water_amplitude, phase=0.5)

        # La humedad baja cuando sube la temperatura del aire
        humidity = self._wave(self.config.base_humidity, self.config.humidity_amplitude, phase=math.pi)

        self.total_readings += 1
        self.step += 1

        return {
            "temperature": round(temperature, 2),
            "humidity": round(min(max(humidity, 0.0), 100.0), 2),
            "water_temp": round(water_temp, 2),
        }

    def _send_to_api(self, reading: Dict[str, float]) -> Optional[int]:
        """POST con el formato del firmware ESP32."""
        if not self.config.send_to_api:
            return None

        payload = {
            "temperatureDHT": reading["temperature"],
            "humidity": reading["humidity"],
            "temperatureDS18B20": reading["water_temp"],
        }
        try:
            response = requests.post(self.config.api_endpoint, json=payload, timeout=5)
            return response.status_code
        except requests.exceptions.RequestException as e:
            logger.warning(f"⚠️ Error enviando datos: {e}")
            return None

    def _publish_mqtt(self, reading: Dict[str, float]) -> None:
        if self._mqtt is None:
            return
        self._mqtt.publish(
            "sensor33/air",
            json.dumps({"temperature": reading["temperature"], "humidity": reading["humidity"]}),
        )
        self._mqtt.publish("sensor33/water", json.dumps({"temperature": reading["water_temp"]}))

    def run_once(self) -> Dict[str, float]:
        """Genera, envía y notifica una sola lectura."""
        reading = self.generate_reading()
        status_code = self._send_to_api(reading)
        self._publish_mqtt(reading)

        print(
            f"🌱 [{datetime.now().strftime('%H:%M:%S')}] "
            f"air={reading['temperature']:5.1f}°C "
            f"hum={reading['humidity']:5.1f}% "
            f"water={reading['water_temp']:5.1f}°C"
            + (f"  └─> API {status_code}" if status_code else "")
        )

        for callback in self._callbacks:
            callback(reading)

        return reading

    def run(self) -> None:
        """Ejecuta el sensor en modo continuo."""
        self.running = True
        self.start_time = datetime.now()

        try:
            while self.running:
                self.run_once()
                time.sleep(self.config.interval_seconds)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        self.running = False
        print(f"\n👋 Hydro sensor detenido. Lecturas: {self.total_readings}, anomalías: {self.total_anomalies}\n")

    def register_callback(self, callback: Callable[[Dict[str, float]], None]) -> None:
        self._callbacks.append(callback)


def _connect_mqtt(host: str, port: int):
    import paho.mqtt.client as mqtt

    client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=f"hydro-sensor-{random.getrandbits(32):08x}")
    client.connect(host, port, 60)
    client.loop_start()
    return client


def main():
    """Punto de entrada principal del script."""
    parser = argparse.ArgumentParser(
        description="🌱 Hydro Sensor Agent - nodo ESP32 virtual para Hydro-Monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Ejemplos de uso:
  python -m sensors.hydro_sensor                      # Solo simulación
  python -m sensors.hydro_sensor --send-api           # POST a /api/post
  python -m sensors.hydro_sensor --mqtt-host localhost
  python -m sensors.hydro_sensor --anomaly-rate 0.1
        """
    )
    parser.add_argument("--endpoint", default="http://localhost:8001/api/post", help="URL del endpoint de ingesta")
    parser.add_argument("--mqtt-host", default=None, help="Broker MQTT donde publicar")
    parser.add_argument("--mqtt-port", type=int, default=1883)
    parser.add_argument("--interval", type=float, default=2.0, help="Segundos entre lecturas (default: 2)")
    parser.add_argument("--send-api", action="store_true", help="Activar envío real al API")
    parser.add_argument("--anomaly-rate", type=float, default=0.02, help="Probabilidad de anomalía 0-1")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")

    config = SensorConfig(
        api_endpoint=args.endpoint,
        mqtt_host=args.mqtt_host,
        mqtt_port=args.mqtt_port,
        interval_seconds=args.interval,
        send_to_api=args.send_api,
        auto_anomaly_probability=args.anomaly_rate,
    )
    mqtt_client = _connect_mqtt(config.mqtt_host, config.mqtt_port) if config.mqtt_host else None

    HydroSensorAgent(config, mqtt_client=mqtt_client).run()


if __name__ == "__main__":
    main()
