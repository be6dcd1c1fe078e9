from __future__ import annotations

from typing import Any, Dict, Optional

from clubauthz.core.ports import MetricsSink

try:
    from opentelemetry.metrics import get_meter  # type: ignore
except Exception:  # pragma: no cover
    get_meter = None  # type: ignore


class OpenTelemetryMetrics(MetricsSink):
    """OpenTelemetry-based MetricsSink.

    Creates:
      - Counter: clubauthz_decisions_total (attributes: decision, entity)
      - Histogram: clubauthz_decision_seconds (unit: s)
    """

    _counter: Optional[Any]
    _hist: Optional[Any]

    def __init__(self, meter: Any = None) -> None:
        self._counter = None
        self._hist = None

        if meter is None:
            if get_meter is None:
                raise RuntimeError(
                    "OpenTelemetryMetrics requires 'opentelemetry-api'. "
                    "Install with extra: clubauthz[otel]."
                )
            meter = get_meter("clubauthz.metrics")

        try:
            self._counter = meter.create_counter(
                name="clubauthz_decisions_total",
                description="Total access decisions by outcome and entity.",
            )
        except Exception:  # pragma: no cover
            self._counter = None

        create_hist = getattr(meter, "create_histogram", None)
        if create_hist is not None:
            try:
                self._hist = create_hist(
                    name="clubauthz_decision_seconds",
                    description="Access decision evaluation duration in seconds.",
                    unit="s",
                )
            except Exception:  # pragma: no cover
                self._hist = None

    def inc(self, name: str, labels: Dict[str, str] | None = None) -> None:
        if self._counter is None:
            return
        labels = labels or {}
        attrs = {"decision": labels.get("decision", "unknown"), "entity": labels.get("entity", "")}
        try:
            self._counter.add(1, attrs)
        except Exception:  # pragma: no cover
            pass

    def observe(self, name: str, value: float, labels: Dict[str, str] | None = None) -> None:
        if self._hist is None:
            return
        try:
            self._hist.record(float(value), {"entity": (labels or {}).get("entity", "")})
        except Exception:  # pragma: no cover
            pass
