"""
Tests unitarios para Intelligence Core.
"""

import pytest

from intelligence_core.config import IntelligenceConfig, AlertingConfig, MetricThresholds, ThresholdBand
from intelligence_core.debouncer import NotificationDebouncer
from intelligence_core.models import DebounceState, Metric, MetricStatus, UnknownMetricError
from intelligence_core.rules_engine import ThresholdClassifier


MINUTE = 60 * 1000


class TestModels:
    """Tests para los modelos de datos."""

    def test_metric_parse_accepts_field_and_metric_names(self):
        assert Metric.parse("waterTemp") is Metric.WATER_TEMP
        assert Metric.parse("water_temp") is Metric.WATER_TEMP
        assert Metric.parse("humidity") is Metric.HUMIDITY

    def test_metric_parse_unknown(self):
        with pytest.raises(UnknownMetricError):
            Metric.parse("ph")

    def test_metric_units(self):
        assert Metric.TEMPERATURE.unit == "°C"
        assert Metric.HUMIDITY.unit == "%"
        assert Metric.WATER_TEMP.reading_field == "water_temp"

    def test_status_priority(self):
        assert MetricStatus.CRITICAL.priority > MetricStatus.WARNING.priority
        assert MetricStatus.WARNING.priority > MetricStatus.OPTIMAL.priority
        assert MetricStatus.CRITICAL.emoji == "🔴"

    def test_fresh_debounce_state(self):
        state = DebounceState()
        assert state.last_status is MetricStatus.UNKNOWN
        assert state.last_notified_at == 0

    def test_critical_band_must_enclose_warning(self):
        with pytest.raises(ValueError):
            MetricThresholds(
                critical=ThresholdBand(min=20.0, max=30.0),
                warning=ThresholdBand(min=15.0, max=35.0),
            )


class TestThresholdClassifier:
    """Tests para el clasificador de umbrales."""

    @pytest.fixture
    def classifier(self):
        return ThresholdClassifier(IntelligenceConfig())

    @pytest.mark.parametrize("value, expected", [
        (25.0, MetricStatus.OPTIMAL),
        (18.0, MetricStatus.OPTIMAL),
        (30.0, MetricStatus.OPTIMAL),
        (17.9, MetricStatus.WARNING),
        (30.1, MetricStatus.WARNING),
        (15.0, MetricStatus.WARNING),
        (35.0, MetricStatus.WARNING),
        (35.0000001, MetricStatus.CRITICAL),
        (14.9, MetricStatus.CRITICAL),
        (40.0, MetricStatus.CRITICAL),
    ])
    def test_temperature_boundaries(self, classifier, value, expected):
        assert classifier.classify(Metric.TEMPERATURE, value) == expected

    @pytest.mark.parametrize("value, expected", [
        (60.0, MetricStatus.OPTIMAL),
        (40.0, MetricStatus.OPTIMAL),
        (80.0, MetricStatus.OPTIMAL),
        (35.0, MetricStatus.WARNING),
        (85.0, MetricStatus.WARNING),
        (34.9, MetricStatus.CRITICAL),
        (85.1, MetricStatus.CRITICAL),
    ])
    def test_humidity_boundaries(self, classifier, value, expected):
        assert classifier.classify(Metric.HUMIDITY, value) == expected

    @pytest.mark.parametrize("value, expected", [
        (24.0, MetricStatus.OPTIMAL),
        (20.0, MetricStatus.OPTIMAL),
        (28.0, MetricStatus.OPTIMAL),
        (19.0, MetricStatus.WARNING),
        (30.0, MetricStatus.WARNING),
        (17.5, MetricStatus.CRITICAL),
        (30.5, MetricStatus.CRITICAL),
    ])
    def test_water_temp_boundaries(self, classifier, value, expected):
        assert classifier.classify(Metric.WATER_TEMP, value) == expected

    def test_classify_by_name(self, classifier):
        assert classifier.classify("waterTemp", 31.0) == MetricStatus.CRITICAL

    def test_custom_threshold(self, classifier):
        """Un umbral personalizado solo cambia los límites indicados."""
        classifier.set_threshold(Metric.TEMPERATURE, warning_max=26.0)

        assert classifier.classify(Metric.TEMPERATURE, 27.0) == MetricStatus.WARNING
        assert classifier.classify(Metric.TEMPERATURE, 36.0) == MetricStatus.CRITICAL
        assert classifier.get_threshold(Metric.TEMPERATURE).warning.min == 18.0

    def test_threshold_status(self, classifier):
        info = classifier.get_threshold_status(Metric.HUMIDITY, 82.0)

        assert info["status"] == "Warning"
        assert info["thresholds"]["critical"]["max"] == 85.0
        assert info["distances"]["to_critical_max"] == pytest.approx(3.0)


class TestNotificationDebouncer:
    """Tests para el motor de decisión de notificaciones."""

    @pytest.fixture
    def debouncer(self):
        return NotificationDebouncer(IntelligenceConfig())

    def test_first_evaluation_always_notifies(self, debouncer):
        fresh = DebounceState()
        for status in (MetricStatus.OPTIMAL, MetricStatus.WARNING, MetricStatus.CRITICAL):
            assert debouncer.should_notify(fresh, status, now=0)

    def test_status_change_notifies_in_both_directions(self, debouncer):
        critical = debouncer.record(MetricStatus.CRITICAL, 0)
        optimal = debouncer.record(MetricStatus.OPTIMAL, 0)

        assert debouncer.should_notify(critical, MetricStatus.OPTIMAL, now=1)
        assert debouncer.should_notify(optimal, MetricStatus.WARNING, now=1)

    def test_sustained_critical_suppressed_before_interval(self, debouncer):
        state = debouncer.record(MetricStatus.CRITICAL, 0)
        assert not debouncer.should_notify(state, MetricStatus.CRITICAL, now=10 * MINUTE)

    def test_sustained_critical_renotifies_after_interval(self, debouncer):
        state = debouncer.record(MetricStatus.CRITICAL, 0)

        assert debouncer.should_notify(state, MetricStatus.CRITICAL, now=30 * MINUTE)
        assert debouncer.should_notify(state, MetricStatus.CRITICAL, now=31 * MINUTE)

    def test_sustained_warning_never_renotifies(self, debouncer):
        state = debouncer.record(MetricStatus.WARNING, 0)
        assert not debouncer.should_notify(state, MetricStatus.WARNING, now=24 * 60 * MINUTE)

    def test_sustained_optimal_never_renotifies(self, debouncer):
        state = debouncer.record(MetricStatus.OPTIMAL, 0)
        assert not debouncer.should_notify(state, MetricStatus.OPTIMAL, now=24 * 60 * MINUTE)

    def test_record_moves_both_fields(self, debouncer):
        state = debouncer.record(MetricStatus.WARNING, 1234)

        assert state.last_status is MetricStatus.WARNING
        assert state.last_notified_at == 1234

    def test_configurable_interval(self):
        debouncer = NotificationDebouncer(IntelligenceConfig(alerting=AlertingConfig(renotify_interval_ms=MINUTE)))
        state = debouncer.record(MetricStatus.CRITICAL, 0)

        assert debouncer.should_notify(state, MetricStatus.CRITICAL, now=MINUTE)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
