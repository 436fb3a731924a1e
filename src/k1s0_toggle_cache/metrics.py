"""OpenTelemetry メトリクス定義"""

from __future__ import annotations

from opentelemetry import metrics

_meter = metrics.get_meter("k1s0_toggle_cache", version="0.1.0")

refresh_total = _meter.create_counter(
    name="toggle_cache_refresh_total",
    description="Total number of toggle cache fetch cycles by outcome",
    unit="1",
)

flags_cached = _meter.create_up_down_counter(
    name="toggle_cache_flags",
    description="Number of toggles in the installed snapshot",
    unit="1",
)
