"""OpenTelemetry + Prometheus fallback wiring for the session relay."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI

from session_relay import config

logger = logging.getLogger("relay.observability")


_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None
_fastapi_instrumentor: Any | None = None

_append_counter: Any | None = None
_malformed_line_counter: Any | None = None
_notification_counter: Any | None = None
_scan_latency_hist: Any | None = None

_prom_enabled = False
_prom_append_counter: Any | None = None
_prom_malformed_line_counter: Any | None = None
_prom_notification_counter: Any | None = None
_prom_scan_latency_hist: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def _label(value: str) -> str:
    return (value or "").strip() or "unknown"


def initialize(app: FastAPI | None = None) -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider, _fastapi_instrumentor
    global _append_counter, _malformed_line_counter, _notification_counter, _scan_latency_hist
    global _prom_enabled
    global _prom_append_counter, _prom_malformed_line_counter, _prom_notification_counter, _prom_scan_latency_hist

    if _initialized:
        if _enabled and app and _fastapi_instrumentor:
            _fastapi_instrumentor.instrument_app(app)
        return

    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (RELAY_OTEL_ENABLED=false)")
        return

    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning("OpenTelemetry dependencies unavailable: %s", exc)
        return

    traces_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "session-relay"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "session-relay",
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace_exporter = OTLPSpanExporter(endpoint=traces_endpoint or None)
    trace_provider.add_span_processor(BatchSpanProcessor(trace_exporter))
    trace.set_tracer_provider(trace_provider)
    tracer = trace.get_tracer("session_relay")

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("session_relay")

    _append_counter = meter.create_counter(
        "relay_appends_total",
        unit="1",
        description="Messages appended to conversation logs",
    )
    _malformed_line_counter = meter.create_counter(
        "relay_malformed_lines_total",
        unit="1",
        description="Log lines skipped because they could not be decoded",
    )
    _notification_counter = meter.create_counter(
        "relay_notifications_total",
        unit="1",
        description="Agent notification attempts by outcome",
    )
    _scan_latency_hist = meter.create_histogram(
        "relay_scan_latency_ms",
        unit="ms",
        description="Latency of session directory scans",
    )

    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = tracer
    _fastapi_instrumentor = FastAPIInstrumentor()
    _enabled = True

    if app:
        _fastapi_instrumentor.instrument_app(app)

    if config.PROM_PORT > 0:
        try:
            from prometheus_client import Counter, Histogram, start_http_server

            start_http_server(config.PROM_PORT)
            _prom_enabled = True
            _prom_append_counter = Counter(
                "relay_appends_total",
                "Messages appended to conversation logs",
                ["result"],
            )
            _prom_malformed_line_counter = Counter(
                "relay_malformed_lines_total",
                "Log lines skipped because they could not be decoded",
                ["source"],
            )
            _prom_notification_counter = Counter(
                "relay_notifications_total",
                "Agent notification attempts by outcome",
                ["notifier", "result"],
            )
            _prom_scan_latency_hist = Histogram(
                "relay_scan_latency_ms",
                "Latency of session directory scans",
            )
            logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Prometheus fallback not started: %s", exc)
            _prom_enabled = False

    logger.info(
        "OpenTelemetry initialized (service=%s endpoint=%s)",
        service_name,
        config.OTEL_ENDPOINT,
    )


def shutdown(app: FastAPI | None = None) -> None:
    global _enabled
    if not _initialized:
        return
    try:
        if app and _fastapi_instrumentor:
            _fastapi_instrumentor.uninstrument_app(app)
    except Exception:
        pass
    try:
        if _meter_provider is not None:
            _meter_provider.shutdown()
    except Exception:
        pass
    try:
        if _trace_provider is not None:
            _trace_provider.shutdown()
    except Exception:
        pass
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


def record_append(result: str) -> None:
    if _enabled and _append_counter is not None:
        _append_counter.add(1, {"result": _label(result)})
    if _prom_enabled and _prom_append_counter is not None:
        _prom_append_counter.labels(result=_label(result)).inc()


def record_malformed_line(source: str) -> None:
    if _enabled and _malformed_line_counter is not None:
        _malformed_line_counter.add(1, {"source": _label(source)})
    if _prom_enabled and _prom_malformed_line_counter is not None:
        _prom_malformed_line_counter.labels(source=_label(source)).inc()


def record_notification(notifier: str, result: str) -> None:
    labels = {"notifier": _label(notifier), "result": _label(result)}
    if _enabled and _notification_counter is not None:
        _notification_counter.add(1, labels)
    if _prom_enabled and _prom_notification_counter is not None:
        _prom_notification_counter.labels(**labels).inc()


def record_scan(duration_ms: float) -> None:
    latency = max(0.0, float(duration_ms))
    if _enabled and _scan_latency_hist is not None:
        _scan_latency_hist.record(latency)
    if _prom_enabled and _prom_scan_latency_hist is not None:
        _prom_scan_latency_hist.observe(latency)
