"""
Registro de dispositivos suscritos a notificaciones push.
Mantiene, por token, el estado de debounce de cada métrica.
"""

import logging
import threading
from typing import Callable, Dict, Iterator, List, Optional

from .models import RegisteredDevice
from .push_client import is_push_token


logger = logging.getLogger(__name__)


class DeviceRegistry:
    """
    📇 Registro de dispositivos.

    Es un objeto inyectable: el pipeline crea una instancia y la comparte con
    el AlertDispatcher y la API. El lock (reentrante) serializa altas, bajas y
    la fase decidir+registrar del dispatcher.

    Ejemplo:
        registry = DeviceRegistry()
        registry.register("ExponentPushToken[abc]")   # True
        registry.register("ExponentPushToken[abc]")   # True, sin duplicar
        registry.list()                               # ["ExponentPushToken[abc]"]
    """

    def __init__(self, token_validator: Optional[Callable[[str], bool]] = None):
        self._validate = token_validator or is_push_token
        self._devices: Dict[str, RegisteredDevice] = {}
        self.lock = threading.RLock()

    def is_valid_token(self, token: str) -> bool:
        return self._validate(token)

    def register(self, token: str) -> bool:
        """
        Registra un dispositivo. Idempotente.

        Returns:
            False si el token no tiene formato válido, True en otro caso
        """
        if not self.is_valid_token(token):
            logger.error(f"Invalid push token: {token}")
            return False

        with self.lock:
            if token in self._devices:
                logger.info("Device already registered")
                return True
            self._devices[token] = RegisteredDevice(token=token)

        logger.info(f"📲 Device registered: {token}")
        return True

    def unregister(self, token: str) -> bool:
        """Elimina un dispositivo; False si no estaba registrado."""
        with self.lock:
            removed = self._devices.pop(token, None) is not None
        if removed:
            logger.info(f"Device unregistered: {token}")
        return removed

    def list(self) -> List[str]:
        """Snapshot de los tokens registrados."""
        with self.lock:
            return list(self._devices.keys())

    def get(self, token: str) -> Optional[RegisteredDevice]:
        with self.lock:
            return self._devices.get(token)

    def devices(self) -> Iterator[RegisteredDevice]:
        """Itera sobre un snapshot de los dispositivos."""
        with self.lock:
            snapshot = list(self._devices.values())
        return iter(snapshot)

    def reset_all(self) -> None:
        """Vuelve el debounce de todos los dispositivos a Unknown / 0."""
        with self.lock:
            for device in self._devices.values():
                device.reset()
        logger.info("All notification states reset")

    def __len__(self) -> int:
        with self.lock:
            return len(self._devices)

    def __contains__(self, token: str) -> bool:
        with self.lock:
            return token in self._devices
