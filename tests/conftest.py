"""Shared fixtures for hello-operator tests."""

from datetime import datetime, timezone

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from prometheus_client import CollectorRegistry

from hello_operator.context import ReconcileContext
from hello_operator.controller import HelloWorldReconciler
from hello_operator.models.helloworld import NamespacedName
from hello_operator.observability import ReconcileMetrics, Telemetry, get_tracer

from .fakes import NAME, NAMESPACE, PULL_SECRET, SOURCE_NAMESPACE, FakeClock, FakeStore


@pytest.fixture(name="store")
def store_fixture() -> FakeStore:
    """Create an empty in-memory store."""
    return FakeStore()


@pytest.fixture(name="clock")
def clock_fixture() -> FakeClock:
    return FakeClock(datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture(name="span_exporter")
def span_exporter_fixture() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture(name="metrics")
def metrics_fixture() -> ReconcileMetrics:
    """Metrics bound to a private registry."""
    return ReconcileMetrics(registry=CollectorRegistry())


@pytest.fixture(name="telemetry")
def telemetry_fixture(
    metrics: ReconcileMetrics, span_exporter: InMemorySpanExporter
) -> Telemetry:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return Telemetry(metrics=metrics, tracer=get_tracer("test", provider))


@pytest.fixture(name="reconciler")
def reconciler_fixture(
    store: FakeStore, telemetry: Telemetry, clock: FakeClock
) -> HelloWorldReconciler:
    return HelloWorldReconciler(
        store,
        telemetry,
        pull_secret_name=PULL_SECRET,
        pull_secret_namespace=SOURCE_NAMESPACE,
        clock=clock,
    )


@pytest.fixture(name="ctx")
def ctx_fixture() -> ReconcileContext:
    return ReconcileContext.background()


@pytest.fixture(name="key")
def key_fixture() -> NamespacedName:
    return NamespacedName(NAMESPACE, NAME)
