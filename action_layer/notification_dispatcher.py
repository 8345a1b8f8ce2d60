"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                   📢 Alert Dispatcher - Hydro-Monitor                        ║
║                    Layer 3: Debounced Push Alerts                             ║
╚══════════════════════════════════════════════════════════════════════════════╝

Para cada lectura nueva: clasifica las tres métricas, consulta al debouncer
por cada dispositivo registrado y arma el lote de notificaciones.
La decisión es síncrona; la entrega se delega a un ThreadPoolExecutor para
que una API de push lenta no frene la ingesta.
"""

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional

from intelligence_core.config import IntelligenceConfig, config as default_config
from intelligence_core.debouncer import NotificationDebouncer, now_ms
from intelligence_core.models import Metric
from intelligence_core.rules_engine import ThresholdClassifier

from .device_registry import DeviceRegistry
from .models import DeliveryReport, PushMessage
from .push_client import ExpoPushClient


logger = logging.getLogger(__name__)


class AlertDispatcher:
    """
    🔔 Dispatcher de alertas - Capa 3

    Ejemplo:
        dispatcher = AlertDispatcher(registry, ExpoPushClient())
        messages = dispatcher.on_reading(reading)   # no bloquea en la entrega
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        push_client: Optional[ExpoPushClient] = None,
        classifier: Optional[ThresholdClassifier] = None,
        debouncer: Optional[NotificationDebouncer] = None,
        config: Optional[IntelligenceConfig] = None,
        clock: Callable[[], int] = now_ms,
        executor: Optional[ThreadPoolExecutor] = None,
        max_history: int = 500,
    ):
        self.config = config or default_config
        self.registry = registry
        self.push_client = push_client or ExpoPushClient()
        self.classifier = classifier or ThresholdClassifier(self.config)
        self.debouncer = debouncer or NotificationDebouncer(self.config)
        self._clock = clock
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.config.alerting.delivery_workers,
            thread_name_prefix="push-delivery",
        )

        self._pending: List[Future] = []
        self._stats_lock = threading.Lock()
        self._notifications: deque = deque(maxlen=max_history)
        self._callbacks: List[Callable[[PushMessage], None]] = []

        # Estadísticas
        self._stats = {
            "readings_evaluated": 0,
            "notifications_decided": 0,
            "batches_submitted": 0,
            "chunks_failed": 0,
            "messages_sent": 0,
        }

    def add_callback(self, callback: Callable[[PushMessage], None]) -> None:
        """Agrega un callback para cada notificación decidida."""
        self._callbacks.append(callback)

    def on_reading(self, reading) -> List[PushMessage]:
        """
        Evalúa una lectura para todos los dispositivos y métricas.

        Nunca lanza excepciones hacia la ingesta: cualquier error inesperado
        se registra en el log y se retorna lo decidido hasta ese momento.

        Args:
            reading: SensorReading completa

        Returns:
            Mensajes decididos (la entrega ocurre en segundo plano)
        """
        if len(self.registry) == 0:
            return []

        messages: List[PushMessage] = []
        try:
            statuses = self.classifier.classify_reading(reading)
            with self._stats_lock:
                self._stats["readings_evaluated"] += 1

            with self.registry.lock:
                now = self._clock()
                for device in self.registry.devices():
                    if not self.registry.is_valid_token(device.token):
                        logger.error(f"Invalid push token: {device.token}")
                        continue

                    for metric in Metric:
                        status = statuses[metric]
                        if not self.debouncer.should_notify(device.states[metric], status, now):
                            continue

                        messages.append(
                            PushMessage.for_status(device.token, metric, reading.value_for(metric), status)
                        )
                        device.states[metric] = self.debouncer.record(status, now)
        except Exception as e:
            logger.exception(f"Error evaluating alerts: {e}")

        if messages:
            self._record(messages)
            self._submit(messages)

        return messages

    def _record(self, messages: List[PushMessage]) -> None:
        with self._stats_lock:
            self._notifications.extend(messages)
            self._stats["notifications_decided"] += len(messages)

        for message in messages:
            if message.is_alarm:
                logger.warning(f"🔴 {message.title} → {message.to}")
            for callback in self._callbacks:
                try:
                    callback(message)
                except Exception as e:
                    logger.error(f"Error en callback: {e}")

    def _submit(self, messages: List[PushMessage]) -> None:
        logger.info(f"Sending {len(messages)} notification(s)")
        with self._stats_lock:
            self._stats["batches_submitted"] += 1
        future = self._executor.submit(self._deliver, messages)
        with self._stats_lock:
            self._pending = [f for f in self._pending if not f.done()] + [future]

    def _deliver(self, messages: List[PushMessage]) -> Optional[DeliveryReport]:
        """Corre en el executor; el resultado solo se registra en el log."""
        try:
            report = self.push_client.send_batch(messages)
        except Exception as e:
            logger.exception(f"❌ Push delivery crashed: {e}")
            return None
        with self._stats_lock:
            self._stats["chunks_failed"] += report.failed_chunks
            self._stats["messages_sent"] += report.sent
        return report

    def flush(self, timeout: Optional[float] = None) -> None:
        """Espera a que terminen las entregas pendientes (tests / apagado)."""
        with self._stats_lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def shutdown(self, wait_for_pending: bool = True) -> None:
        self._executor.shutdown(wait=wait_for_pending)

    def get_notifications(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Retorna las últimas notificaciones decididas."""
        with self._stats_lock:
            recent = list(self._notifications)[-limit:]
        return [n.to_dict() for n in recent]

    def get_stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            stats = dict(self._stats)
        return {**stats, "registered_devices": len(self.registry)}

    def clear_history(self) -> None:
        with self._stats_lock:
            self._notifications.clear()
