"""Operator configuration loaded from environment variables."""

import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class OperatorConfig(BaseModel):
    """Runtime settings for the operator."""

    log_level: str = "INFO"
    worker_limit: int = Field(default=5, ge=1)
    posting_enabled: bool = False
    server_timeout: int = Field(default=60, ge=1)
    manage_crds: bool = True
    generate_crd_files: bool = False

    pull_secret_name: str = "registry-credentials"
    pull_secret_source_namespace: str = "hello-operator-system"

    requeue_delay: float = Field(default=5.0, gt=0)
    reconcile_timeout: float = Field(default=30.0, gt=0)
    resync_interval: float = Field(default=60.0, gt=0)
    max_backoff: float = Field(default=300.0, gt=0)

    metrics_port: int = Field(default=8080, ge=0, le=65535)
    otlp_endpoint: Optional[str] = None
    environment: str = "development"
    service_name: str = "hello-operator"

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value):
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if value.upper() not in valid:
            raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
        return value.upper()


def _env_bool(key, default):
    return os.getenv(key, str(default).lower()).lower() in ("true", "1", "yes")


def load_config() -> OperatorConfig:
    """Build the operator config from the process environment."""
    return OperatorConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        worker_limit=os.getenv("WORKER_LIMIT", "5"),
        posting_enabled=_env_bool("POSTING_ENABLED", False),
        server_timeout=os.getenv("SERVER_TIMEOUT", "60"),
        manage_crds=_env_bool("MANAGE_CRDS", True),
        generate_crd_files=_env_bool("GENERATE_CRD_FILES", False),
        pull_secret_name=os.getenv("PULL_SECRET_NAME", "registry-credentials"),
        pull_secret_source_namespace=os.getenv(
            "PULL_SECRET_SOURCE_NAMESPACE", "hello-operator-system"
        ),
        requeue_delay=os.getenv("REQUEUE_DELAY", "5"),
        reconcile_timeout=os.getenv("RECONCILE_TIMEOUT", "30"),
        resync_interval=os.getenv("RESYNC_INTERVAL", "60"),
        max_backoff=os.getenv("MAX_BACKOFF", "300"),
        metrics_port=os.getenv("METRICS_PORT", "8080"),
        otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") or None,
        environment=os.getenv("ENVIRONMENT", "development"),
    )
