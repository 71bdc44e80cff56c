"""Metrics, tracing and log export for the reconciler."""

from .logs import init_log_export, shutdown_log_export
from .metrics import ReconcileMetrics
from .telemetry import ReconcileObserver, Telemetry
from .tracing import get_tracer, init_tracing, record_error, service_resource

__all__ = [
    "ReconcileMetrics",
    "ReconcileObserver",
    "Telemetry",
    "get_tracer",
    "init_log_export",
    "init_tracing",
    "record_error",
    "service_resource",
    "shutdown_log_export",
]
