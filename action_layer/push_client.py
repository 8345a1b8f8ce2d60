"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                    📱 Expo Push Client - Hydro-Monitor                       ║
║                    Layer 3: Push Notification Delivery                        ║
╚══════════════════════════════════════════════════════════════════════════════╝

Cliente HTTP para la API de notificaciones push de Expo.
Valida tokens, divide los lotes en chunks y envía cada chunk por separado.
Un chunk que falla se registra en el log y no detiene a los siguientes.
"""

import logging
import re
from typing import List, Optional, Sequence

import requests

from .config import PushSettings
from .models import DeliveryReport, PushMessage, PushTicket


logger = logging.getLogger(__name__)


_UUID_TOKEN = re.compile(r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$", re.IGNORECASE)


class PushDeliveryError(Exception):
    """La API de push rechazó o no respondió a un chunk."""
    pass


def is_push_token(token) -> bool:
    """
    Valida el formato de un token push de Expo.

    Acepta ExponentPushToken[...], ExpoPushToken[...] o un id con forma de UUID.
    """
    if not isinstance(token, str):
        return False
    if (token.startswith("ExponentPushToken[") or token.startswith("ExpoPushToken[")) and token.endswith("]"):
        return True
    return bool(_UUID_TOKEN.match(token))


class ExpoPushClient:
    """
    📱 Cliente de Expo Push.

    Ejemplo:
        client = ExpoPushClient(PushSettings.from_env())
        report = client.send_batch(messages)
        print(report.to_dict())
    """

    def __init__(
        self,
        settings: Optional[PushSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or PushSettings()
        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        })
        if self.settings.access_token:
            self._session.headers["Authorization"] = f"Bearer {self.settings.access_token}"

    @staticmethod
    def is_valid_token(token) -> bool:
        return is_push_token(token)

    def chunk_messages(self, messages: Sequence[PushMessage]) -> List[List[PushMessage]]:
        """Divide un lote respetando el máximo de mensajes por llamada."""
        size = self.settings.max_chunk_size
        return [list(messages[i:i + size]) for i in range(0, len(messages), size)]

    def send_chunk(self, chunk: Sequence[PushMessage]) -> List[PushTicket]:
        """
        Envía un chunk a Expo.

        Returns:
            Un PushTicket por mensaje

        Raises:
            PushDeliveryError: Error de red, HTTP o errores a nivel de request
        """
        try:
            response = self._session.post(
                self.settings.url,
                json=[m.to_dict() for m in chunk],
                timeout=self.settings.timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            raise PushDeliveryError(f"Push request failed: {e}") from e

        if not isinstance(payload, dict):
            raise PushDeliveryError(f"Unexpected push response: {payload!r}")
        if payload.get("errors"):
            raise PushDeliveryError(f"Push request rejected: {payload['errors']}")

        data = payload.get("data")
        if not isinstance(data, list) or not all(isinstance(t, dict) for t in data):
            raise PushDeliveryError(f"Unexpected push response data: {data!r}")

        tickets = [PushTicket.from_dict(t) for t in data]
        for ticket in tickets:
            if not ticket.ok:
                logger.warning(f"⚠️ Push ticket error: {ticket.message} {ticket.details or ''}")
        return tickets

    def send_batch(self, messages: Sequence[PushMessage]) -> DeliveryReport:
        """
        Entrega un lote completo, chunk por chunk (best-effort, sin reintentos).
        """
        report = DeliveryReport()

        for chunk in self.chunk_messages(messages):
            report.chunks += 1
            try:
                tickets = self.send_chunk(chunk)
            except PushDeliveryError as e:
                report.failed_chunks += 1
                logger.error(f"❌ Error sending push notifications ({len(chunk)} messages): {e}")
                continue
            report.sent += len(chunk)
            report.tickets.extend(tickets)

        logger.info(
            f"📱 Push delivery: {report.sent} sent, {report.failed_chunks}/{report.chunks} chunks failed"
        )
        return report

    def close(self) -> None:
        self._session.close()
