"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                    🧠 Intelligence Core - Layer 2 🧠                          ║
║                 Threshold & Alert Logic for Hydro-Monitor                     ║
╚══════════════════════════════════════════════════════════════════════════════╝

Capa de lógica de negocio.
Recibe lecturas normalizadas (Capa 1), clasifica cada métrica contra sus
bandas de umbrales y decide cuándo una notificación push está justificada.

Módulos:
- models: Métricas, estados y registro de debounce
- config: Bandas de umbrales y parámetros de alertas
- rules_engine: Clasificador de umbrales
- debouncer: Motor de decisión de notificaciones
"""

from .models import Metric, MetricStatus, DebounceState, UnknownMetricError
from .config import ThresholdBand, MetricThresholds, AlertingConfig, IntelligenceConfig
from .rules_engine import ThresholdClassifier
from .debouncer import NotificationDebouncer

__all__ = [
    "Metric",
    "MetricStatus",
    "DebounceState",
    "UnknownMetricError",
    "ThresholdBand",
    "MetricThresholds",
    "AlertingConfig",
    "IntelligenceConfig",
    "ThresholdClassifier",
    "NotificationDebouncer",
]

__version__ = "1.0.0"
