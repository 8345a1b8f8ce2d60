"""
Configuración del cliente de notificaciones push.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"


@dataclass
class PushSettings:
    """Parámetros del servicio de push de Expo."""
    url: str = EXPO_PUSH_URL
    access_token: Optional[str] = None
    timeout_seconds: float = 10.0
    max_chunk_size: int = 100

    @classmethod
    def from_env(cls) -> "PushSettings":
        load_dotenv()
        return cls(
            url=os.getenv("HYDRO_PUSH_URL", EXPO_PUSH_URL),
            access_token=os.getenv("HYDRO_PUSH_ACCESS_TOKEN") or None,
            timeout_seconds=float(os.getenv("HYDRO_PUSH_TIMEOUT", "10")),
        )
