"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                    🎯 Action Layer - Hydro-Monitor                           ║
║                      Layer 3: Dashboard & Notificator                        ║
╚══════════════════════════════════════════════════════════════════════════════╝

Capa de Visualización y Notificación del sistema Hydro-Monitor.
Consume lecturas clasificadas por la Capa 2 (Intelligence Core) y:
- Las transmite en vivo al Dashboard (SSE)
- Envía notificaciones push con debounce a los dispositivos registrados

Components:
    - DeviceRegistry: Dispositivos suscritos y su estado de debounce
    - AlertDispatcher: Decide y entrega las alertas push
    - ExpoPushClient: Cliente de la API de Expo
    - LiveFeed: Distribuye lecturas a los clientes del Dashboard

Author: Hydro-Monitor Team
"""

from .models import (
    RegisteredDevice,
    PushMessage,
    PushTicket,
    DeliveryReport,
    DashboardReading,
    TicketStatus,
)
from .push_client import ExpoPushClient, PushDeliveryError, is_push_token
from .device_registry import DeviceRegistry
from .notification_dispatcher import AlertDispatcher
from .data_observer import LiveFeed

__all__ = [
    "RegisteredDevice",
    "PushMessage",
    "PushTicket",
    "DeliveryReport",
    "DashboardReading",
    "TicketStatus",
    "ExpoPushClient",
    "PushDeliveryError",
    "is_push_token",
    "DeviceRegistry",
    "AlertDispatcher",
    "LiveFeed",
]

__version__ = "1.0.0"
