"""
Modelos de datos para Action Layer (Capa 3).
Define dispositivos registrados, mensajes push, recibos de entrega y la
lectura formateada para el Dashboard.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List
import uuid

from intelligence_core.models import DebounceState, Metric, MetricStatus


class TicketStatus(Enum):
    """Estado de un recibo de Expo."""
    OK = "ok"
    ERROR = "error"


@dataclass
class RegisteredDevice:
    """
    Dispositivo suscrito a notificaciones push.
    Un DebounceState por métrica, sin acoplamiento entre métricas.
    """
    token: str
    states: Dict[Metric, DebounceState] = field(
        default_factory=lambda: {metric: DebounceState() for metric in Metric}
    )
    registered_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def reset(self) -> None:
        """Vuelve todas las métricas a Unknown / 0."""
        self.states = {metric: DebounceState() for metric in Metric}


@dataclass
class PushMessage:
    """Mensaje push en el formato de la API de Expo."""
    to: str
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)
    sound: str = "default"
    priority: str = "high"

    @classmethod
    def for_status(
        cls,
        token: str,
        metric: Metric,
        value: float,
        status: MetricStatus,
    ) -> "PushMessage":
        """Factory: construye la alerta (o recuperación) de una métrica."""
        reading = f"{value:.1f}{metric.unit}"

        if status == MetricStatus.CRITICAL:
            title = f"⚠️ {metric.label} Critical!"
            body = f"{metric.label} is at critical level: {reading}"
        elif status == MetricStatus.WARNING:
            title = f"⚠️ {metric.label} Warning"
            body = f"{metric.label} is outside the optimal range: {reading}"
        else:
            title = f"✅ {metric.label} Recovered"
            body = f"{metric.label} has returned to normal: {reading}"

        return cls(
            to=token,
            title=title,
            body=body,
            data={"metric": metric.value, "value": value, "status": status.value},
        )

    @property
    def is_alarm(self) -> bool:
        return self.data.get("status") != MetricStatus.OPTIMAL.value

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para el POST a Expo."""
        return {
            "to": self.to,
            "sound": self.sound,
            "title": self.title,
            "body": self.body,
            "priority": self.priority,
            "data": self.data,
        }


@dataclass
class PushTicket:
    """Recibo por mensaje devuelto por la API de push."""
    status: TicketStatus
    id: Optional[str] = None
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PushTicket":
        # Cualquier estado desconocido cuenta como error
        status = TicketStatus.OK if data.get("status") == TicketStatus.OK.value else TicketStatus.ERROR
        return cls(
            status=status,
            id=data.get("id"),
            message=data.get("message"),
            details=data.get("details"),
        )

    @property
    def ok(self) -> bool:
        return self.status == TicketStatus.OK


@dataclass
class DeliveryReport:
    """Resultado de entregar un lote de mensajes en chunks."""
    chunks: int = 0
    sent: int = 0
    failed_chunks: int = 0
    tickets: List[PushTicket] = field(default_factory=list)

    @property
    def rejected(self) -> int:
        return sum(1 for t in self.tickets if not t.ok)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunks": self.chunks,
            "sent": self.sent,
            "failed_chunks": self.failed_chunks,
            "rejected": self.rejected,
        }


@dataclass
class DashboardReading:
    """
    Lectura formateada para el Dashboard.
    Estructura JSON que consume el frontend (SSE y realtime).
    """
    id: str
    temperature: float
    humidity: float
    water_temp: float
    timestamp: str
    statuses: Dict[str, str]

    @classmethod
    def from_reading(cls, reading, statuses: Dict[Metric, MetricStatus]) -> "DashboardReading":
        """Crea una lectura de Dashboard desde una SensorReading clasificada."""
        return cls(
            id=str(uuid.uuid4()),
            temperature=reading.temperature,
            humidity=reading.humidity,
            water_temp=reading.water_temp,
            timestamp=reading.timestamp.isoformat(),
            statuses={metric.value: status.value for metric, status in statuses.items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "temperature": self.temperature,
            "humidity": self.humidity,
            "water_temp": self.water_temp,
            "timestamp": self.timestamp,
            "statuses": dict(self.statuses),
        }
