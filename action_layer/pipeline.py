"""
🔗 Pipeline de Hydro-Monitor: Capa 1 → Capa 2 → Capa 3.

Cada lectura completa se guarda en el historial, se publica al live feed
con las mismas cifras y se pasa al dispatcher de alertas.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from intelligence_core.config import IntelligenceConfig, config as default_config
from intelligence_core.rules_engine import ThresholdClassifier
from ingestion.models import LatestReadingCache, SensorReading
from storage.history_store import HistoryStore

from .data_observer import LiveFeed
from .device_registry import DeviceRegistry
from .models import DashboardReading
from .notification_dispatcher import AlertDispatcher
from .push_client import ExpoPushClient


logger = logging.getLogger(__name__)


class HydroMonitorPipeline:
    """
    🔗 Raíz de composición del sistema.

    Todas las piezas son inyectables para poder aislarlas en tests.
    """

    def __init__(
        self,
        config: Optional[IntelligenceConfig] = None,
        registry: Optional[DeviceRegistry] = None,
        push_client: Optional[ExpoPushClient] = None,
        history: Optional[HistoryStore] = None,
        cache: Optional[LatestReadingCache] = None,
        feed: Optional[LiveFeed] = None,
        dispatcher: Optional[AlertDispatcher] = None,
    ):
        self.config = config or default_config
        self.classifier = ThresholdClassifier(self.config)
        if registry is None:
            registry = dispatcher.registry if dispatcher is not None else DeviceRegistry()
        self.registry = registry
        self.history = history or HistoryStore(":memory:")
        self.cache = cache or LatestReadingCache()
        self.feed = feed or LiveFeed()
        self.dispatcher = dispatcher or AlertDispatcher(
            self.registry,
            push_client=push_client,
            classifier=self.classifier,
            config=self.config,
        )

        self._processed = 0
        self._start_time = datetime.now()

    def ingest(self, **fields: Optional[float]) -> Optional[SensorReading]:
        """
        Mezcla campos (posiblemente parciales) en la caché y procesa la
        lectura completa si ya se conocen las tres métricas.
        """
        reading = self.cache.update(**fields)
        if reading is not None:
            self.process_reading(reading)
        return reading

    def process_reading(self, reading: SensorReading) -> DashboardReading:
        """Historial + live feed + alertas para una lectura completa."""
        try:
            self.history.insert(reading)
        except Exception as e:
            logger.error(f"Error inserting reading into history: {e}")

        statuses = self.classifier.classify_reading(reading)
        dashboard_reading = DashboardReading.from_reading(reading, statuses)
        self.feed.publish(dashboard_reading)

        self.dispatcher.on_reading(reading)

        self._processed += 1
        return dashboard_reading

    def get_stats(self) -> Dict[str, Any]:
        return {
            "pipeline": {
                "total_processed": self._processed,
                "uptime_seconds": (datetime.now() - self._start_time).total_seconds(),
            },
            "live_feed": self.feed.get_stats(),
            "alerts": self.dispatcher.get_stats(),
        }

    def shutdown(self) -> None:
        self.dispatcher.shutdown()
        self.history.close()


# Instancia global para la app HTTP
_global_pipeline: Optional[HydroMonitorPipeline] = None


def get_pipeline() -> HydroMonitorPipeline:
    """Obtiene la instancia global del pipeline (dependencia de FastAPI)."""
    global _global_pipeline
    if _global_pipeline is None:
        from ingestion.config import HistorySettings
        from .config import PushSettings

        _global_pipeline = HydroMonitorPipeline(
            history=HistoryStore(HistorySettings.from_env().db_path),
            push_client=ExpoPushClient(PushSettings.from_env()),
        )
    return _global_pipeline


def reset_pipeline() -> None:
    """Reinicia la instancia global."""
    global _global_pipeline
    if _global_pipeline is not None:
        _global_pipeline.shutdown()
    _global_pipeline = None
