"""
Motor de Reglas para Intelligence Core.
Clasifica cada métrica de una lectura contra sus bandas de umbrales.
"""

from typing import Dict, Optional, Union

from .models import Metric, MetricStatus
from .config import IntelligenceConfig, ThresholdBand, MetricThresholds, config as default_config


class ThresholdClassifier:
    """
    🔧 Clasificador de umbrales - Optimal / Warning / Critical.

    Fuera de la banda crítica → Critical; si no, fuera de la banda de
    advertencia → Warning; si no → Optimal. Los límites son estrictos:
    un valor exactamente en el borde pertenece a la banda interior.

    Ejemplo:
        classifier = ThresholdClassifier()
        classifier.classify(Metric.TEMPERATURE, 36.0)  # MetricStatus.CRITICAL
    """

    def __init__(self, config: Optional[IntelligenceConfig] = None):
        self.config = config or default_config
        self._custom_thresholds: Dict[Metric, MetricThresholds] = {}

    def set_threshold(
        self,
        metric: Union[Metric, str],
        critical_min: Optional[float] = None,
        critical_max: Optional[float] = None,
        warning_min: Optional[float] = None,
        warning_max: Optional[float] = None,
    ) -> None:
        """
        Define umbrales personalizados para una métrica.

        Los parámetros omitidos conservan el valor de la configuración base.
        """
        metric = _as_metric(metric)
        base = self.get_threshold(metric)

        self._custom_thresholds[metric] = MetricThresholds(
            critical=ThresholdBand(
                min=critical_min if critical_min is not None else base.critical.min,
                max=critical_max if critical_max is not None else base.critical.max,
            ),
            warning=ThresholdBand(
                min=warning_min if warning_min is not None else base.warning.min,
                max=warning_max if warning_max is not None else base.warning.max,
            ),
        )

    def get_threshold(self, metric: Union[Metric, str]) -> MetricThresholds:
        """Obtiene los umbrales vigentes de una métrica."""
        metric = _as_metric(metric)
        if metric in self._custom_thresholds:
            return self._custom_thresholds[metric]
        return self.config.get_threshold(metric)

    def classify(self, metric: Union[Metric, str], value: float) -> MetricStatus:
        """
        Clasifica un valor numérico de una métrica.

        Args:
            metric: Métrica (enum o nombre)
            value: Valor ya validado como número finito

        Returns:
            MetricStatus (nunca UNKNOWN)
        """
        threshold = self.get_threshold(metric)

        if not threshold.critical.contains(value):
            return MetricStatus.CRITICAL
        if not threshold.warning.contains(value):
            return MetricStatus.WARNING
        return MetricStatus.OPTIMAL

    def classify_reading(self, reading) -> Dict[Metric, MetricStatus]:
        """Clasifica las tres métricas de una SensorReading."""
        return {
            metric: self.classify(metric, reading.value_for(metric))
            for metric in Metric
        }

    def get_threshold_status(self, metric: Union[Metric, str], value: float) -> dict:
        """
        Retorna información detallada sobre el valor respecto a sus bandas.

        Returns:
            Diccionario con estado, bandas y distancias a cada límite
        """
        metric = _as_metric(metric)
        threshold = self.get_threshold(metric)

        return {
            "metric": metric.value,
            "current_value": value,
            "status": self.classify(metric, value).value,
            "thresholds": {
                "critical": {"min": threshold.critical.min, "max": threshold.critical.max},
                "warning": {"min": threshold.warning.min, "max": threshold.warning.max},
            },
            "distances": {
                "to_critical_min": value - threshold.critical.min,
                "to_critical_max": threshold.critical.max - value,
                "to_warning_min": value - threshold.warning.min,
                "to_warning_max": threshold.warning.max - value,
            },
        }


def _as_metric(metric: Union[Metric, str]) -> Metric:
    return metric if isinstance(metric, Metric) else Metric.parse(metric)
