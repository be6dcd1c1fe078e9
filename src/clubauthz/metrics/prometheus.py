from __future__ import annotations

from typing import Any, Dict, Optional

from clubauthz.core.ports import MetricsSink

try:
    from prometheus_client import Counter, Histogram  # type: ignore
except Exception:  # pragma: no cover
    Counter = Histogram = None  # type: ignore


class PrometheusMetrics(MetricsSink):
    """Prometheus-based MetricsSink.

    Exposes:
      - clubauthz_decisions_total{decision="allow|deny", entity="..."}
      - clubauthz_decision_seconds{entity="..."} (Histogram)
    """

    _counter: Optional[Any]
    _hist: Optional[Any]

    def __init__(self, *, registry: Any = None) -> None:
        if Counter is None or Histogram is None:
            raise RuntimeError(
                "PrometheusMetrics requires 'prometheus_client'. "
                "Install with extra: clubauthz[metrics]."
            )
        kwargs: Dict[str, Any] = {}
        if registry is not None:
            kwargs["registry"] = registry
        self._counter = Counter(
            "clubauthz_decisions_total",
            "Total access decisions by outcome and entity.",
            labelnames=("decision", "entity"),
            **kwargs,
        )
        self._hist = Histogram(
            "clubauthz_decision_seconds",
            "Access decision evaluation duration in seconds.",
            labelnames=("entity",),
            **kwargs,
        )

    def inc(self, name: str, labels: Dict[str, str] | None = None) -> None:
        """Increment ``clubauthz_decisions_total``; *name* is accepted for the sink protocol."""
        labels = labels or {}
        try:
            self._counter.labels(  # type: ignore[union-attr]
                decision=labels.get("decision", "unknown"),
                entity=labels.get("entity", ""),
            ).inc()
        except Exception:  # pragma: no cover
            # never raise from metrics path
            pass

    def observe(self, name: str, value: float, labels: Dict[str, str] | None = None) -> None:
        labels = labels or {}
        try:
            self._hist.labels(entity=labels.get("entity", "")).observe(float(value))  # type: ignore[union-attr]
        except Exception:  # pragma: no cover
            pass
