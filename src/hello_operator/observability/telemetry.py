"""Observability port handed to the reconciler."""

from contextlib import contextmanager

from opentelemetry import trace

from .metrics import ReconcileMetrics
from .tracing import get_tracer


class ReconcileObserver:
    """No-op observer. Subclasses forward the signals to real backends."""

    @contextmanager
    def span(self, name, attributes=None):
        yield trace.INVALID_SPAN

    def record_outcome(self, outcome):
        pass

    def record_error(self):
        pass

    def observe_duration(self, seconds):
        pass

    def record_dependency_error(self, namespace):
        pass

    def record_pod_created(self, namespace):
        pass

    def record_pod_creation_error(self, namespace):
        pass

    def set_resource_present(self, namespace):
        pass


class Telemetry(ReconcileObserver):
    """Observer backed by Prometheus metrics and an OpenTelemetry tracer."""

    def __init__(self, metrics=None, tracer=None):
        self.metrics = metrics or ReconcileMetrics()
        self.tracer = tracer or get_tracer("helloworld-controller")

    @contextmanager
    def span(self, name, attributes=None):
        with self.tracer.start_as_current_span(
            name,
            attributes=attributes,
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            yield span

    def record_outcome(self, outcome):
        self.metrics.reconcile_total.labels(
            controller=self.metrics.controller, result=outcome
        ).inc()

    def record_error(self):
        self.metrics.reconcile_errors.labels(controller=self.metrics.controller).inc()

    def observe_duration(self, seconds):
        self.metrics.reconcile_duration.labels(
            controller=self.metrics.controller
        ).observe(seconds)

    def record_dependency_error(self, namespace):
        self.metrics.dependency_errors.labels(namespace=namespace).inc()

    def record_pod_created(self, namespace):
        self.metrics.pod_creations.labels(namespace=namespace).inc()

    def record_pod_creation_error(self, namespace):
        self.metrics.pod_creation_errors.labels(namespace=namespace).inc()

    def set_resource_present(self, namespace):
        self.metrics.resources.labels(namespace=namespace).set(1)
