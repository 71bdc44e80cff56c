"""Reconciler that drives a HelloWorld object toward its pod.

A pass loads the HelloWorld, provisions the image pull secret, and either
creates the pod or projects the existing pod's phase onto the status. The
pod is never modified once it exists. Every pass is a single synchronous
call; the optimistic concurrency check of the status write is the only
serialization point between overlapping passes for the same key.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from opentelemetry.trace import Status, StatusCode
from pydantic import ValidationError

from hello_operator.controller.builder import (
    DEFAULT_PULL_SECRET,
    build_desired_pod,
    is_controlled_by,
    set_controller_reference,
)
from hello_operator.controller.conditions import (
    find_condition,
    is_condition_true,
    set_condition,
    utcnow,
)
from hello_operator.controller.dependencies import ensure_pull_secret
from hello_operator.exceptions import (
    AlreadyExistsError,
    NotFoundError,
    OperatorError,
    OwnershipError,
    ReconcileCancelled,
)
from hello_operator.models.helloworld import (
    ConditionStatus,
    ConditionType,
    HelloWorld,
    Phase,
)
from hello_operator.observability import ReconcileObserver, record_error
from hello_operator.store import HELLOWORLD, POD

logger = logging.getLogger(__name__)

RESOURCE_DELETED = "resource_deleted"
ERROR = "error"
POD_CREATED = "pod_created"
NO_CHANGE = "no_change"

DEFAULT_PULL_SECRET_NAMESPACE = "hello-operator-system"

READY = ConditionType.READY
PROGRESSING = ConditionType.PROGRESSING
DEGRADED = ConditionType.DEGRADED
TRUE = ConditionStatus.TRUE
FALSE = ConditionStatus.FALSE
UNKNOWN = ConditionStatus.UNKNOWN


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a reconcile pass.

    ``requeue`` asks for a short-delay re-invocation; a non-None ``error``
    asks for a retry with backoff.
    """

    requeue: bool = False
    error: Optional[Exception] = None
    outcome: str = NO_CHANGE


class HelloWorldReconciler:
    """Reconciles HelloWorld objects into ``<name>-pod`` pods."""

    def __init__(
        self,
        store,
        observer=None,
        pull_secret_name=DEFAULT_PULL_SECRET,
        pull_secret_namespace=DEFAULT_PULL_SECRET_NAMESPACE,
        clock=utcnow,
    ):
        self.store = store
        self.observer = observer or ReconcileObserver()
        self.pull_secret_name = pull_secret_name
        self.pull_secret_namespace = pull_secret_namespace
        self.clock = clock

    @classmethod
    def from_config(cls, store, observer, config):
        return cls(
            store,
            observer,
            pull_secret_name=config.pull_secret_name,
            pull_secret_namespace=config.pull_secret_source_namespace,
        )

    def reconcile(self, ctx, key) -> ReconcileResult:
        """Run one reconcile pass for ``key``.

        Args:
            ctx: ReconcileContext carrying cancellation and deadline
            key: NamespacedName of the HelloWorld object
        """
        start = time.monotonic()
        attributes = {"resource.name": key.name, "resource.namespace": key.namespace}
        with self.observer.span("Reconcile", attributes) as span:
            try:
                result = self._reconcile(ctx, key, span)
            except Exception as e:
                logger.exception(f"Unexpected error reconciling HelloWorld {key}")
                result = self._failed(span, e, f"Unexpected error reconciling {key}")
            finally:
                duration = time.monotonic() - start
                self.observer.observe_duration(duration)
                span.set_attribute("reconcile.duration_seconds", duration)
            self.observer.record_outcome(result.outcome)
        return result

    def _reconcile(self, ctx, key, span):
        try:
            raw = self.store.get(ctx, HELLOWORLD, key.namespace, key.name)
        except NotFoundError:
            logger.debug(
                f"HelloWorld {key} not found. Ignoring since object must be deleted"
            )
            span.set_attribute("reconcile.result", RESOURCE_DELETED)
            return ReconcileResult(outcome=RESOURCE_DELETED)
        except OperatorError as e:
            return self._failed(span, e, f"Failed to get HelloWorld {key}")

        try:
            helloworld = HelloWorld.from_object(raw)
        except ValidationError as e:
            return self._failed(span, e, f"Invalid HelloWorld {key}")

        span.set_attribute("helloworld.message", helloworld.spec.message)
        span.set_attribute("helloworld.uid", helloworld.metadata.uid or "")

        try:
            ensure_pull_secret(
                ctx,
                self.store,
                key.namespace,
                self.pull_secret_name,
                self.pull_secret_namespace,
            )
        except ReconcileCancelled as e:
            return self._failed(span, e, "Reconcile cancelled")
        except OperatorError as e:
            # Images without a registry credential must still start.
            logger.warning(
                f"Failed to ensure pull secret {self.pull_secret_name} "
                f"in {key.namespace}: {e}"
            )
            self.observer.record_dependency_error(key.namespace)
            record_error(span, e, "Failed to ensure image pull secret")

        pod = build_desired_pod(
            helloworld.spec, key.name, key.namespace, self.pull_secret_name
        )
        try:
            pod = set_controller_reference(helloworld, pod)
        except OwnershipError as e:
            self._write_failure_status(
                ctx,
                helloworld,
                f"Failed to set controller reference: {e}",
                [
                    (READY, FALSE, "OwnerReferenceFailed", str(e)),
                    (PROGRESSING, FALSE, "OwnerReferenceFailed", str(e)),
                ],
            )
            return self._failed(span, e, "Failed to set controller reference")

        pod_name = pod["metadata"]["name"]
        try:
            found = self.store.get(ctx, POD, key.namespace, pod_name)
        except NotFoundError:
            return self._create_pod(ctx, helloworld, pod, span)
        except OperatorError as e:
            return self._failed(span, e, f"Failed to get Pod {key.namespace}/{pod_name}")

        return self._observe_pod(ctx, helloworld, found, span)

    def _create_pod(self, ctx, helloworld, pod, span):
        namespace = helloworld.metadata.namespace
        pod_name = pod["metadata"]["name"]

        try:
            helloworld = self._update_status(
                ctx,
                helloworld,
                Phase.PENDING,
                f"Creating pod {pod_name}",
                [
                    (PROGRESSING, TRUE, "Creating", f"Creating pod {pod_name}"),
                    (READY, FALSE, "PodBeingCreated", "Pod is being created"),
                ],
            )
        except OperatorError as e:
            return self._failed(span, e, "Failed to update HelloWorld status")

        logger.info(
            f"Creating a new Pod {namespace}/{pod_name} "
            f"with message {helloworld.spec.message!r}"
        )
        with self.observer.span(
            "CreatePod", {"pod.name": pod_name, "pod.namespace": namespace}
        ):
            try:
                self.store.create(ctx, pod)
            except AlreadyExistsError:
                logger.info(f"Pod {namespace}/{pod_name} was created concurrently")
            except OperatorError as e:
                self.observer.record_pod_creation_error(namespace)
                self._write_failure_status(
                    ctx,
                    helloworld,
                    f"Failed to create pod {pod_name}: {e}",
                    [
                        (READY, FALSE, "PodCreationFailed", str(e)),
                        (PROGRESSING, FALSE, "PodCreationFailed", str(e)),
                        (DEGRADED, TRUE, "PodCreationFailed", str(e)),
                    ],
                )
                return self._failed(span, e, f"Failed to create Pod {namespace}/{pod_name}")

        self.observer.record_pod_created(namespace)
        updates = [
            (PROGRESSING, TRUE, "PodCreated", f"Pod {pod_name} created"),
            (READY, FALSE, "Starting", "Pod is starting"),
        ]
        updates.extend(self._clear_degraded(helloworld, "PodCreated"))
        try:
            self._update_status(
                ctx,
                helloworld,
                Phase.RUNNING,
                f"Pod {pod_name} created",
                updates,
                pod_name=pod_name,
            )
        except OperatorError as e:
            return self._failed(span, e, "Failed to update HelloWorld status")

        logger.info(f"Pod {namespace}/{pod_name} created successfully")
        span.set_attribute("reconcile.result", POD_CREATED)
        span.set_status(Status(StatusCode.OK))
        return ReconcileResult(requeue=True, outcome=POD_CREATED)

    def _observe_pod(self, ctx, helloworld, found, span):
        namespace = helloworld.metadata.namespace
        metadata = found.get("metadata") or {}
        pod_name = metadata.get("name")

        if not is_controlled_by(found, helloworld):
            logger.warning(
                f"Pod {namespace}/{pod_name} is not controlled by "
                f"HelloWorld {helloworld.metadata.name}, leaving it untouched"
            )
        status_seen = helloworld.status.observedGeneration is not None
        if status_seen and not helloworld.status_is_current():
            logger.info(
                f"Spec of HelloWorld {helloworld.key} changed to generation "
                f"{helloworld.metadata.generation}, existing Pod {pod_name} is kept"
            )
        logger.debug(f"Skip reconcile: Pod {namespace}/{pod_name} already exists")
        was_ready = is_condition_true(helloworld.status.conditions, READY)

        pod_phase = (found.get("status") or {}).get("phase")
        if pod_phase == "Running":
            phase, message = Phase.RUNNING, "Pod is running"
            updates = [
                (READY, TRUE, "PodRunning", message),
                (PROGRESSING, FALSE, "PodRunning", message),
            ]
            updates.extend(self._clear_degraded(helloworld, "PodRunning"))
        elif pod_phase == "Pending":
            phase, message = Phase.PENDING, "Pod is pending"
            updates = [
                (READY, FALSE, "PodPending", message),
                (PROGRESSING, TRUE, "PodPending", message),
            ]
        elif pod_phase == "Failed":
            phase, message = Phase.FAILED, "Pod has failed"
            updates = [
                (READY, FALSE, "PodFailed", message),
                (DEGRADED, TRUE, "PodFailed", message),
            ]
        else:
            phase = Phase.UNKNOWN
            message = f"Pod phase is {pod_phase or 'unknown'}"
            updates = [(READY, UNKNOWN, "PodPhaseUnknown", message)]

        try:
            self._update_status(
                ctx, helloworld, phase, message, updates, pod_name=pod_name
            )
        except OperatorError as e:
            return self._failed(span, e, "Failed to update HelloWorld status")

        if phase == Phase.RUNNING and not was_ready:
            logger.info(f"HelloWorld {helloworld.key} is ready, Pod {pod_name} is running")
        self.observer.set_resource_present(namespace)
        span.set_attribute("reconcile.result", NO_CHANGE)
        span.set_status(Status(StatusCode.OK))
        return ReconcileResult(outcome=NO_CHANGE)

    def _clear_degraded(self, helloworld, reason):
        if find_condition(helloworld.status.conditions, DEGRADED) is None:
            return []
        return [(DEGRADED, FALSE, reason, "")]

    def _update_status(self, ctx, helloworld, phase, message, updates, pod_name=None):
        """Merge condition updates into the status and persist it.

        Returns the HelloWorld as stored, carrying the new resourceVersion so
        a later write in the same pass is not rejected as stale.
        """
        now = self.clock()
        generation = helloworld.metadata.generation
        conditions = helloworld.status.conditions
        for condition_type, status, reason, condition_message in updates:
            conditions = set_condition(
                conditions,
                condition_type,
                status,
                reason,
                condition_message,
                observed_generation=generation,
                now=now,
            )

        changes = {
            "phase": phase,
            "message": message,
            "observedGeneration": generation,
            "lastUpdateTime": now,
            "conditions": conditions,
        }
        if pod_name is not None:
            changes["managedResourceName"] = pod_name
        status = helloworld.status.model_copy(update=changes)

        stored = self.store.update_status(ctx, helloworld.status_body(status))
        return HelloWorld.from_object(stored)

    def _write_failure_status(self, ctx, helloworld, message, updates):
        try:
            self._update_status(ctx, helloworld, Phase.FAILED, message, updates)
        except OperatorError as e:
            logger.error(
                f"Failed to record failure status on HelloWorld "
                f"{helloworld.key}: {e}"
            )

    def _failed(self, span, error, description):
        logger.error(f"{description}: {error}")
        self.observer.record_error()
        record_error(span, error, description)
        span.set_status(Status(StatusCode.ERROR, description))
        return ReconcileResult(error=error, outcome=ERROR)
