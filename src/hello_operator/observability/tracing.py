"""OpenTelemetry tracing setup."""

import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from hello_operator import __version__

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "hello_operator"


def service_resource(service_name, environment="development"):
    """Resource attributes shared by exported spans and log records."""
    return Resource.create(
        {
            "service.name": service_name,
            "service.version": __version__,
            "environment": environment,
        }
    )


def init_tracing(service_name, endpoint, environment="development"):
    """Install a tracer provider exporting spans over OTLP/gRPC.

    Returns the provider so the caller can shut it down, or None when no
    endpoint is configured.
    """
    if not endpoint:
        logger.info("No OTLP endpoint configured, tracing export disabled")
        return None

    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
        OTLPSpanExporter,
    )

    provider = TracerProvider(resource=service_resource(service_name, environment))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
    )
    trace.set_tracer_provider(provider)
    logger.info(f"Tracing enabled, exporting to {endpoint}")
    return provider


def get_tracer(component, provider=None):
    """Tracer for the given component."""
    provider = provider or trace.get_tracer_provider()
    return provider.get_tracer(
        INSTRUMENTATION_NAME,
        __version__,
        attributes={"component": component},
    )


def record_error(span, error, description):
    """Record an exception on the span."""
    span.record_exception(error, attributes={"error.description": description})
