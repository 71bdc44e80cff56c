"""Tests for OTLP log export."""

import logging

from opentelemetry.sdk._logs import LoggingHandler
from opentelemetry.sdk._logs.export import InMemoryLogExporter

from hello_operator.observability import init_log_export, shutdown_log_export


def test_disabled_without_endpoint() -> None:
    assert init_log_export("hello-operator", None) is None


def test_records_are_exported() -> None:
    exporter = InMemoryLogExporter()
    target = logging.getLogger("hello_operator.tests.export")

    provider = init_log_export(
        "hello-operator", None, "test", exporter=exporter, target=target
    )
    try:
        target.error("Failed to create Pod demo/greeting-pod")
        provider.force_flush()
    finally:
        shutdown_log_export(provider, target)

    (exported,) = exporter.get_finished_logs()
    assert exported.log_record.body == "Failed to create Pod demo/greeting-pod"
    assert exported.log_record.severity_text == "ERROR"
    assert provider.resource.attributes["service.name"] == "hello-operator"
    assert provider.resource.attributes["environment"] == "test"
    assert not any(isinstance(h, LoggingHandler) for h in target.handlers)
