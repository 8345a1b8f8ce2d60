"""
Debouncer de notificaciones para Intelligence Core.
Decide, por dispositivo y por métrica, si un estado merece notificación push.
"""

import time
from typing import Optional

from .models import DebounceState, MetricStatus
from .config import IntelligenceConfig, config as default_config


def now_ms() -> int:
    """Tiempo actual en epoch millis."""
    return int(time.time() * 1000)


class NotificationDebouncer:
    """
    🔕 Debouncer - evita tormentas de alertas sin silenciar un crítico.

    Reglas, evaluadas en orden:
    1. Si el estado cambió respecto al último notificado → notificar
       (en cualquier dirección, incluida la recuperación).
    2. Si sigue en Critical y pasó el intervalo de re-alerta
       desde la última notificación → notificar.
    3. En otro caso → no notificar.

    Un estado recién creado tiene last_status=UNKNOWN, por lo que la
    primera evaluación siempre notifica.

    Ejemplo:
        debouncer = NotificationDebouncer()
        if debouncer.should_notify(state, MetricStatus.CRITICAL, now):
            state = debouncer.record(MetricStatus.CRITICAL, now)
    """

    def __init__(self, config: Optional[IntelligenceConfig] = None):
        self.config = config or default_config

    @property
    def renotify_interval_ms(self) -> int:
        return self.config.alerting.renotify_interval_ms

    def should_notify(
        self,
        state: DebounceState,
        current_status: MetricStatus,
        now: Optional[int] = None,
    ) -> bool:
        """
        Evalúa si corresponde notificar.

        Args:
            state: Último estado notificado para el par dispositivo/métrica
            current_status: Estado recién clasificado
            now: Tiempo de evaluación en epoch millis (por defecto, ahora)

        Returns:
            True si se debe enviar una notificación
        """
        if now is None:
            now = now_ms()

        if current_status != state.last_status:
            return True

        if (
            current_status == MetricStatus.CRITICAL
            and now - state.last_notified_at >= self.renotify_interval_ms
        ):
            return True

        return False

    def record(self, current_status: MetricStatus, now: Optional[int] = None) -> DebounceState:
        """Construye el nuevo registro tras decidir notificar."""
        return DebounceState(
            last_status=current_status,
            last_notified_at=now if now is not None else now_ms(),
        )
