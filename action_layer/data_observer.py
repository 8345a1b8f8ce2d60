"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                  👁️ Live Feed - Hydro-Monitor                                ║
║                 Layer 3: Real-time Data Distribution                         ║
╚══════════════════════════════════════════════════════════════════════════════╝

Distribuye cada lectura procesada a los clientes del Dashboard.
Implementa el patrón Observer: callbacks síncronos y colas asyncio por
conexión SSE.
"""

import asyncio
import logging
import threading
from collections import deque
from typing import Any, Callable, Dict, List, Optional, Tuple

from .models import DashboardReading


logger = logging.getLogger(__name__)


class LiveFeed:
    """
    👁️ Fan-out de lecturas para el Dashboard.

    publish() puede llamarse desde cualquier hilo (p. ej. el loop de MQTT);
    cada cola SSE se alimenta en su propio event loop con call_soon_threadsafe.

    Ejemplo:
        feed = LiveFeed()
        queue = feed.subscribe()        # dentro de un event loop
        feed.publish(dashboard_reading)
    """

    def __init__(self, max_buffer_size: int = 500, queue_size: int = 100):
        self.max_buffer_size = max_buffer_size
        self.queue_size = queue_size

        # Buffer circular de lecturas
        self._readings: deque = deque(maxlen=max_buffer_size)

        self._subscribers: List[Callable[[DashboardReading], None]] = []
        self._queues: List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = []

        self._published = 0
        self._lock = threading.Lock()

    def publish(self, reading: DashboardReading) -> None:
        """Entrega una lectura a todos los suscriptores."""
        with self._lock:
            self._readings.append(reading)
            self._published += 1
            subscribers = list(self._subscribers)
            queues = list(self._queues)

        for callback in subscribers:
            try:
                callback(reading)
            except Exception as e:
                logger.error(f"Error en subscriber callback: {e}")

        for loop, queue in queues:
            try:
                loop.call_soon_threadsafe(self._offer, queue, reading)
            except RuntimeError:
                # Loop cerrado: la conexión ya no existe
                self._drop_queue(queue)

    @staticmethod
    def _offer(queue: asyncio.Queue, reading: DashboardReading) -> None:
        try:
            queue.put_nowait(reading)
        except asyncio.QueueFull:
            logger.debug("SSE queue full, dropping reading")

    def add_subscriber(self, callback: Callable[[DashboardReading], None]) -> None:
        self._subscribers.append(callback)

    def subscribe(self) -> asyncio.Queue:
        """Crea una cola para una conexión SSE. Debe llamarse dentro de un event loop."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        with self._lock:
            self._queues.append((asyncio.get_running_loop(), queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._drop_queue(queue)

    def _drop_queue(self, queue: asyncio.Queue) -> None:
        with self._lock:
            self._queues = [(loop, q) for loop, q in self._queues if q is not queue]

    def get_readings(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Últimas lecturas del buffer."""
        with self._lock:
            readings_list = list(self._readings)
        return [r.to_dict() for r in readings_list[-limit:]]

    def latest(self) -> Optional[DashboardReading]:
        with self._lock:
            return self._readings[-1] if self._readings else None

    @property
    def connections(self) -> int:
        with self._lock:
            return len(self._queues)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "published": self._published,
            "buffered": len(self._readings),
            "connections": self.connections,
            "subscribers": len(self._subscribers),
        }
