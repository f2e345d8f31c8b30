"""フラグ評価の OpenTelemetry メトリクス定義"""

from __future__ import annotations

from opentelemetry import metrics

_meter = metrics.get_meter("k1s0.flag_evaluator", version="0.1.0")

flag_evaluations_total = _meter.create_counter(
    name="flag_evaluations_total",
    description="Total number of feature flag evaluations",
    unit="1",
)

flag_evaluation_duration_seconds = _meter.create_histogram(
    name="flag_evaluation_duration_seconds",
    description="Feature flag evaluation duration in seconds",
    unit="s",
)

flag_evaluated_at_errors_total = _meter.create_counter(
    name="flag_evaluated_at_errors_total",
    description="Total number of failed last-evaluated timestamp updates",
    unit="1",
)
