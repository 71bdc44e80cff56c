"""Export of operator log records over OTLP."""

import logging

from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor

from .tracing import service_resource

logger = logging.getLogger(__name__)


def init_log_export(
    service_name, endpoint, environment="development", exporter=None, target=None
):
    """Forward records of ``target`` (the root logger by default) to OTLP.

    Python log levels become OpenTelemetry severities through the
    ``LoggingHandler``. Records carry the same service resource as spans.

    Returns the LoggerProvider for shutdown, or None when export is disabled.
    """
    if exporter is None:
        if not endpoint:
            logger.info("No OTLP endpoint configured, log export disabled")
            return None

        from opentelemetry.exporter.otlp.proto.grpc._log_exporter import (
            OTLPLogExporter,
        )

        exporter = OTLPLogExporter(endpoint=endpoint, insecure=True)

    provider = LoggerProvider(resource=service_resource(service_name, environment))
    provider.add_log_record_processor(BatchLogRecordProcessor(exporter))

    handler = LoggingHandler(level=logging.NOTSET, logger_provider=provider)
    (target or logging.getLogger()).addHandler(handler)
    logger.info(f"Log export enabled for {service_name}")
    return provider


def shutdown_log_export(provider, target=None):
    """Detach the export handlers and flush pending records."""
    target = target or logging.getLogger()
    for handler in [h for h in target.handlers if isinstance(h, LoggingHandler)]:
        target.removeHandler(handler)
    provider.shutdown()
