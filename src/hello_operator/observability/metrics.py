"""Prometheus metrics for the HelloWorld controller."""

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

CONTROLLER = "helloworld"


class ReconcileMetrics:
    """Reconcile metrics bound to an explicit collector registry.

    Pass ``prometheus_client.REGISTRY`` to expose them on the default
    endpoint; tests use a private registry.
    """

    def __init__(self, registry=None, controller=CONTROLLER):
        self.registry = registry if registry is not None else CollectorRegistry()
        self.controller = controller

        self.reconcile_total = Counter(
            "helloworld_reconcile_total",
            "Total number of reconciliations per controller",
            ["controller", "result"],
            registry=self.registry,
        )
        self.reconcile_errors = Counter(
            "helloworld_reconcile_errors_total",
            "Total number of reconciliation errors per controller",
            ["controller"],
            registry=self.registry,
        )
        self.reconcile_duration = Histogram(
            "helloworld_reconcile_duration_seconds",
            "Duration of reconciliations per controller",
            ["controller"],
            registry=self.registry,
        )
        self.resources = Gauge(
            "helloworld_resources",
            "Number of HelloWorld resources",
            ["namespace"],
            registry=self.registry,
        )
        self.pod_creations = Counter(
            "helloworld_pod_creations_total",
            "Total number of successful pod creations",
            ["namespace"],
            registry=self.registry,
        )
        self.pod_creation_errors = Counter(
            "helloworld_pod_creation_errors_total",
            "Total number of pod creation errors",
            ["namespace"],
            registry=self.registry,
        )
        self.dependency_errors = Counter(
            "helloworld_dependency_errors_total",
            "Total number of image pull secret provisioning errors",
            ["namespace"],
            registry=self.registry,
        )
