"""Tests for the Kubernetes backed resource store."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import urllib3
from kubernetes.client.exceptions import ApiException

from hello_operator import context as context_module
from hello_operator.context import ReconcileContext
from hello_operator.exceptions import (
    AlreadyExistsError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ReconcileCancelled,
    StoreError,
    TransientStoreError,
)
from hello_operator.store import HELLOWORLD, POD, SECRET, KubernetesStore


@pytest.fixture(name="k8s_store")
def k8s_store_fixture() -> KubernetesStore:
    """Create a KubernetesStore with mocked API clients."""
    store = KubernetesStore(api_client=MagicMock())
    store.core_api = MagicMock()
    store.custom_api = MagicMock()
    return store


def test_get_helloworld(k8s_store, ctx) -> None:
    k8s_store.custom_api.get_namespaced_custom_object.return_value = {"kind": "HelloWorld"}

    assert k8s_store.get(ctx, HELLOWORLD, "demo", "greeting") == {"kind": "HelloWorld"}
    k8s_store.custom_api.get_namespaced_custom_object.assert_called_once_with(
        group="apps.example.com",
        version="v1",
        plural="helloworlds",
        namespace="demo",
        name="greeting",
    )


def test_get_pod_is_serialized(k8s_store, ctx) -> None:
    pod = MagicMock()
    k8s_store.core_api.read_namespaced_pod.return_value = pod
    k8s_store.api_client.sanitize_for_serialization.return_value = {"kind": "Pod"}

    assert k8s_store.get(ctx, POD, "demo", "greeting-pod") == {"kind": "Pod"}
    k8s_store.api_client.sanitize_for_serialization.assert_called_once_with(pod)


def test_request_timeout_is_forwarded(k8s_store) -> None:
    k8s_store.core_api.read_namespaced_secret.return_value = {}

    k8s_store.get(ReconcileContext(timeout=30), SECRET, "demo", "creds")

    kwargs = k8s_store.core_api.read_namespaced_secret.call_args.kwargs
    assert 0 < kwargs["_request_timeout"] <= 30


def test_no_timeout_without_deadline(k8s_store, ctx) -> None:
    k8s_store.core_api.read_namespaced_secret.return_value = {}

    k8s_store.get(ctx, SECRET, "demo", "creds")

    assert "_request_timeout" not in k8s_store.core_api.read_namespaced_secret.call_args.kwargs


def test_cancelled_context_skips_call(k8s_store) -> None:
    ctx = ReconcileContext()
    ctx.cancel()

    with pytest.raises(ReconcileCancelled):
        k8s_store.get(ctx, POD, "demo", "greeting-pod")
    k8s_store.core_api.read_namespaced_pod.assert_not_called()


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (404, NotFoundError),
        (401, ForbiddenError),
        (403, ForbiddenError),
        (500, TransientStoreError),
        (503, TransientStoreError),
    ],
)
def test_get_error_mapping(k8s_store, ctx, status, expected) -> None:
    k8s_store.core_api.read_namespaced_pod.side_effect = ApiException(status=status)

    with pytest.raises(expected) as exc_info:
        k8s_store.get(ctx, POD, "demo", "greeting-pod")
    assert exc_info.value.status == status


def test_create_conflict_is_already_exists(k8s_store, ctx) -> None:
    k8s_store.core_api.create_namespaced_pod.side_effect = ApiException(status=409)
    pod = {"kind": POD, "metadata": {"name": "greeting-pod", "namespace": "demo"}}

    with pytest.raises(AlreadyExistsError):
        k8s_store.create(ctx, pod)


def test_create_pod(k8s_store, ctx) -> None:
    k8s_store.core_api.create_namespaced_pod.return_value = {"kind": POD}
    pod = {"kind": POD, "metadata": {"name": "greeting-pod", "namespace": "demo"}}

    k8s_store.create(ctx, pod)

    k8s_store.core_api.create_namespaced_pod.assert_called_once_with(
        namespace="demo", body=pod
    )


def test_update_status(k8s_store, ctx) -> None:
    k8s_store.custom_api.replace_namespaced_custom_object_status.return_value = {}
    body = {
        "kind": HELLOWORLD,
        "metadata": {"name": "greeting", "namespace": "demo", "resourceVersion": "7"},
        "status": {"phase": "Running"},
    }

    k8s_store.update_status(ctx, body)

    k8s_store.custom_api.replace_namespaced_custom_object_status.assert_called_once_with(
        group="apps.example.com",
        version="v1",
        namespace="demo",
        plural="helloworlds",
        name="greeting",
        body=body,
    )


def test_update_status_conflict(k8s_store, ctx) -> None:
    k8s_store.custom_api.replace_namespaced_custom_object_status.side_effect = (
        ApiException(status=409)
    )
    body = {"kind": HELLOWORLD, "metadata": {"name": "greeting", "namespace": "demo"}}

    with pytest.raises(ConflictError):
        k8s_store.update_status(ctx, body)


def test_transport_error_is_transient(k8s_store, ctx) -> None:
    k8s_store.core_api.read_namespaced_pod.side_effect = (
        urllib3.exceptions.MaxRetryError(None, "/api/v1/pods")
    )

    with pytest.raises(TransientStoreError):
        k8s_store.get(ctx, POD, "demo", "greeting-pod")


def test_unsupported_kind(k8s_store, ctx) -> None:
    with pytest.raises(StoreError):
        k8s_store.get(ctx, "ConfigMap", "demo", "x")
    with pytest.raises(StoreError):
        k8s_store.update_status(ctx, {"kind": POD, "metadata": {}})


def test_get_forwards_namespace_and_name(k8s_store, ctx) -> None:
    k8s_store.core_api.read_namespaced_pod.return_value = {"kind": POD}

    k8s_store.get(ctx, POD, "demo", "greeting-pod")

    k8s_store.core_api.read_namespaced_pod.assert_called_once_with(
        namespace="demo", name="greeting-pod"
    )


def test_timeout_after_cancel_is_cancellation(k8s_store) -> None:
    ctx = ReconcileContext(timeout=30)

    def cancel_then_time_out(**kwargs):
        ctx.cancel()
        raise urllib3.exceptions.ReadTimeoutError(None, "/api/v1/pods", "Read timed out.")

    k8s_store.core_api.read_namespaced_pod.side_effect = cancel_then_time_out

    with pytest.raises(ReconcileCancelled, match="aborted: cancelled"):
        k8s_store.get(ctx, POD, "demo", "greeting-pod")


def test_timeout_past_deadline_is_cancellation(k8s_store, monkeypatch) -> None:
    now = [1000.0]
    monkeypatch.setattr(context_module, "time", SimpleNamespace(monotonic=lambda: now[0]))
    ctx = ReconcileContext(timeout=0.05)

    def slow_read(**kwargs):
        now[0] += 0.1
        raise urllib3.exceptions.ReadTimeoutError(None, "/api/v1/pods", "Read timed out.")

    k8s_store.core_api.read_namespaced_pod.side_effect = slow_read

    with pytest.raises(ReconcileCancelled, match="deadline exceeded"):
        k8s_store.get(ctx, POD, "demo", "greeting-pod")


def test_api_error_after_cancel_is_cancellation(k8s_store) -> None:
    ctx = ReconcileContext()

    def cancel_then_fail(**kwargs):
        ctx.cancel()
        raise ApiException(status=503)

    k8s_store.core_api.create_namespaced_secret.side_effect = cancel_then_fail
    secret = {"kind": SECRET, "metadata": {"name": "creds", "namespace": "demo"}}

    with pytest.raises(ReconcileCancelled):
        k8s_store.create(ctx, secret)
