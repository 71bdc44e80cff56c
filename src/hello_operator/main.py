import logging

import kopf
import kubernetes
from prometheus_client import REGISTRY, start_http_server

from hello_operator import handlers  # noqa: F401  registers kopf handlers
from hello_operator.config import load_config
from hello_operator.crd.generator import CRDManager
from hello_operator.observability import (
    ReconcileMetrics,
    Telemetry,
    init_log_export,
    init_tracing,
    shutdown_log_export,
)
from hello_operator.plugins import OperatorContext, PluginRegistry
from hello_operator.store import KubernetesStore

logger = logging.getLogger(__name__)

plugin_registry = None
tracer_provider = None
log_provider = None


def configure_logging(level):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def load_kubernetes_config():
    try:
        kubernetes.config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes config")
    except kubernetes.config.ConfigException:
        kubernetes.config.load_kube_config()
        logger.info("Loaded local Kubernetes config")


@kopf.on.startup()
def startup_fn(settings: kopf.OperatorSettings, **kwargs):
    """Wire the reconciler, telemetry and plugins into the operator."""
    global plugin_registry, tracer_provider, log_provider

    config = load_config()
    configure_logging(config.log_level)
    log_provider = init_log_export(
        config.service_name, config.otlp_endpoint, config.environment
    )
    logger.info("Hello operator is starting up...")

    load_kubernetes_config()

    if config.manage_crds:
        manager = CRDManager()
        if config.generate_crd_files:
            manager.generate_all_crds(force=True)
        if manager.apply_crds_to_cluster():
            logger.info("CRDs applied to cluster successfully")
        else:
            logger.warning("No CRDs were applied to cluster")

    if config.metrics_port:
        start_http_server(config.metrics_port)
        logger.info(f"Serving metrics on :{config.metrics_port}")

    tracer_provider = init_tracing(
        config.service_name, config.otlp_endpoint, config.environment
    )
    telemetry = Telemetry(metrics=ReconcileMetrics(registry=REGISTRY))
    context = OperatorContext(config=config, store=KubernetesStore(), observer=telemetry)

    plugin_registry = PluginRegistry()
    if plugin_registry.discover_plugins() == 0:
        logger.error("No plugins discovered - operator will have no functionality")
        raise RuntimeError("No plugins available")

    init_results = plugin_registry.initialise_all_plugins(context)
    if not any(init_results.values()):
        logger.error("No plugins initialised successfully")
        raise RuntimeError("Plugin initialisation failed")
    plugin_registry.register_all_handlers()

    # Status belongs to the reconciler, so kopf keeps its state in annotations.
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()
    settings.batching.worker_limit = config.worker_limit
    settings.posting.enabled = config.posting_enabled
    settings.watching.server_timeout = config.server_timeout

    logger.info(f"Plugins: {plugin_registry.list_plugin_names()}")
    logger.info(f"Worker limit: {settings.batching.worker_limit}")
    logger.info("Hello operator startup complete")


@kopf.on.probe(id="plugins")
def plugins_probe(**kwargs):
    """Plugin health for kopf's liveness endpoint."""
    if plugin_registry is None:
        return {}
    return plugin_registry.get_plugins_health_status()


@kopf.on.cleanup()
def cleanup_fn(**kwargs):
    """Cleanup operator resources."""
    logger.info("Hello operator is shutting down...")

    if plugin_registry:
        plugin_registry.shutdown_all_plugins()
    if tracer_provider:
        tracer_provider.shutdown()
    if log_provider:
        shutdown_log_export(log_provider)

    logger.info("Hello operator shutdown complete")


def main():
    try:
        kopf.run(clusterwide=True)
    except KeyboardInterrupt:
        logger.info("Operator stopped by user")


if __name__ == "__main__":
    main()
