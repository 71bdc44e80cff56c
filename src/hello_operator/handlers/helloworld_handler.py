"""Kopf handlers for HelloWorld custom resources."""

import logging

import kopf

from hello_operator.config import load_config
from hello_operator.context import ReconcileContext
from hello_operator.models.helloworld import GROUP, PLURAL, VERSION, NamespacedName

logger = logging.getLogger(__name__)

config = load_config()

# Set by the HelloWorld plugin during operator startup.
_reconciler = None


def configure(reconciler, operator_config=None):
    """Install the reconciler the handlers delegate to."""
    global _reconciler, config
    _reconciler = reconciler
    if operator_config is not None:
        config = operator_config


def backoff_delay(retry):
    """Exponential backoff for failed passes, capped at ``max_backoff``."""
    return min(config.requeue_delay * (2**retry), config.max_backoff)


def run_reconcile(namespace, name, retry=0):
    """Run a pass and translate its result for kopf.

    Raises:
        kopf.TemporaryError: the pass failed or asked to be requeued
    """
    if _reconciler is None:
        raise kopf.TemporaryError("Reconciler not configured yet", delay=config.requeue_delay)

    ctx = ReconcileContext(timeout=config.reconcile_timeout)
    result = _reconciler.reconcile(ctx, NamespacedName(namespace, name))

    if result.error is not None:
        raise kopf.TemporaryError(
            f"Reconcile of {namespace}/{name} failed: {result.error}",
            delay=backoff_delay(retry),
        )
    if result.requeue:
        raise kopf.TemporaryError(
            f"Requeue of {namespace}/{name} requested", delay=config.requeue_delay
        )
    return result


@kopf.on.create(GROUP, VERSION, PLURAL)
@kopf.on.update(GROUP, VERSION, PLURAL, field="spec")
@kopf.on.resume(GROUP, VERSION, PLURAL)
def helloworld_reconcile(name, namespace, meta, retry, **kwargs):
    """Reconcile a HelloWorld on create, spec update and operator restart."""
    result = run_reconcile(namespace, name, retry=retry)
    kopf.info(
        meta,
        reason="Reconciled",
        message=f"HelloWorld {name} reconciled ({result.outcome})",
    )


@kopf.timer(GROUP, VERSION, PLURAL, interval=config.resync_interval, idle=config.resync_interval)
def helloworld_resync(name, namespace, retry, **kwargs):
    """Periodic level-triggered resync."""
    run_reconcile(namespace, name, retry=retry)


@kopf.on.event(
    "pods",
    labels={"helloworld": kopf.PRESENT, "app.kubernetes.io/managed-by": "hello-operator"},
)
def pod_event(event, namespace, labels, **kwargs):
    """Re-trigger the owning HelloWorld when its pod changes."""
    owner = labels["helloworld"]
    try:
        run_reconcile(namespace, owner)
    except kopf.TemporaryError as e:
        # Event handlers are not retried; the resync timer picks this up.
        logger.warning(f"Pod event for {namespace}/{owner}: {e}")
