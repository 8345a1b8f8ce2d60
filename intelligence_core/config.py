"""
Configuración centralizada para Intelligence Core.
Define las bandas de umbrales por métrica y los parámetros de alertas.
"""

from dataclasses import dataclass, field
from typing import Dict

from .models import Metric


@dataclass(frozen=True)
class ThresholdBand:
    """Rango aceptable [min, max]; fuera de él (estrictamente) se activa la banda."""
    min: float
    max: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


@dataclass(frozen=True)
class MetricThresholds:
    """Umbrales de una métrica. La banda crítica envuelve a la de advertencia."""
    critical: ThresholdBand
    warning: ThresholdBand

    def __post_init__(self):
        if self.critical.min > self.warning.min or self.critical.max < self.warning.max:
            raise ValueError("critical band must enclose the warning band")


# Umbrales por defecto para el cultivo hidropónico
DEFAULT_THRESHOLDS: Dict[Metric, MetricThresholds] = {
    Metric.TEMPERATURE: MetricThresholds(
        critical=ThresholdBand(min=15.0, max=35.0),
        warning=ThresholdBand(min=18.0, max=30.0),
    ),
    Metric.HUMIDITY: MetricThresholds(
        critical=ThresholdBand(min=35.0, max=85.0),
        warning=ThresholdBand(min=40.0, max=80.0),
    ),
    Metric.WATER_TEMP: MetricThresholds(
        critical=ThresholdBand(min=18.0, max=30.0),
        warning=ThresholdBand(min=20.0, max=28.0),
    ),
}


@dataclass
class AlertingConfig:
    """Configuración del debounce y del envío de notificaciones."""
    renotify_interval_ms: int = 30 * 60 * 1000  # Re-alerta de crítico sostenido
    delivery_workers: int = 2


@dataclass
class IntelligenceConfig:
    """Configuración completa del Intelligence Core."""
    thresholds: Dict[Metric, MetricThresholds] = field(default_factory=lambda: DEFAULT_THRESHOLDS.copy())
    alerting: AlertingConfig = field(default_factory=AlertingConfig)

    def get_threshold(self, metric: Metric) -> MetricThresholds:
        """Obtiene los umbrales de una métrica."""
        return self.thresholds.get(metric, DEFAULT_THRESHOLDS[metric])


# Instancia global de configuración (puede ser sobrescrita)
config = IntelligenceConfig()
