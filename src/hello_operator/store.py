"""Resource store used by the reconciler.

The reconciler only talks to the ``ResourceStore`` interface: get, create and
update-status on plain object dicts addressed by (kind, namespace, name).
``KubernetesStore`` implements it on top of the Kubernetes API and folds
``ApiException`` into the operator's error taxonomy.
"""

import logging
from abc import ABC, abstractmethod

import kubernetes
import urllib3
from kubernetes.client.exceptions import ApiException

from hello_operator.exceptions import (
    AlreadyExistsError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ReconcileCancelled,
    StoreError,
    TransientStoreError,
)
from hello_operator.models.helloworld import GROUP, KIND, PLURAL, VERSION

logger = logging.getLogger(__name__)

POD = "Pod"
SECRET = "Secret"
HELLOWORLD = KIND


class ResourceStore(ABC):
    """Key-value store of typed objects addressed by (kind, namespace, name)."""

    @abstractmethod
    def get(self, ctx, kind, namespace, name):
        """Return the object as a dict.

        Raises:
            NotFoundError: the object does not exist
            StoreError: any other failure
        """

    @abstractmethod
    def create(self, ctx, obj):
        """Create ``obj`` and return the stored object.

        Raises:
            AlreadyExistsError: an object with the same key exists
            StoreError: any other failure
        """

    @abstractmethod
    def update_status(self, ctx, obj):
        """Write the status sub-resource of ``obj``.

        ``obj["metadata"]["resourceVersion"]`` guards the write.

        Raises:
            ConflictError: the object changed since it was read
            StoreError: any other failure
        """


def translate_api_exception(e, action, kind, namespace, name):
    """Map an ApiException onto the operator's error taxonomy."""
    description = f"{action} {kind} {namespace}/{name} failed: {e.status} {e.reason}"
    if e.status == 404:
        return NotFoundError(description, status=e.status)
    if e.status == 409:
        if action == "create":
            return AlreadyExistsError(description, status=e.status)
        return ConflictError(description, status=e.status)
    if e.status in (401, 403):
        return ForbiddenError(description, status=e.status)
    return TransientStoreError(description, status=e.status)


class KubernetesStore(ResourceStore):
    """ResourceStore backed by the Kubernetes API server."""

    def __init__(self, api_client=None):
        self.api_client = api_client or kubernetes.client.ApiClient()
        self.core_api = kubernetes.client.CoreV1Api(self.api_client)
        self.custom_api = kubernetes.client.CustomObjectsApi(self.api_client)

    def _to_dict(self, obj):
        if isinstance(obj, dict):
            return obj
        return self.api_client.sanitize_for_serialization(obj)

    def _call(self, ctx, action, kind, namespace, name, fn, /, **kwargs):
        timeout = ctx.request_timeout()
        if timeout is not None:
            kwargs["_request_timeout"] = timeout
        try:
            return self._to_dict(fn(**kwargs))
        except ApiException as e:
            if ctx.cancelled:
                raise self._cancelled(ctx, action, kind, namespace, name) from e
            raise translate_api_exception(e, action, kind, namespace, name) from e
        except urllib3.exceptions.HTTPError as e:
            # A read timeout at the deadline is the pass running out of time.
            if ctx.cancelled:
                raise self._cancelled(ctx, action, kind, namespace, name) from e
            raise TransientStoreError(
                f"{action} {kind} {namespace}/{name} failed: {e}"
            ) from e

    @staticmethod
    def _cancelled(ctx, action, kind, namespace, name):
        reason = "deadline exceeded" if ctx.remaining() == 0 else "cancelled"
        return ReconcileCancelled(f"{action} {kind} {namespace}/{name} aborted: {reason}")

    def get(self, ctx, kind, namespace, name):
        if kind == HELLOWORLD:
            fn = self.custom_api.get_namespaced_custom_object
            kwargs = dict(group=GROUP, version=VERSION, plural=PLURAL)
        elif kind == POD:
            fn = self.core_api.read_namespaced_pod
            kwargs = {}
        elif kind == SECRET:
            fn = self.core_api.read_namespaced_secret
            kwargs = {}
        else:
            raise StoreError(f"Unsupported kind: {kind}")
        return self._call(
            ctx, "get", kind, namespace, name, fn, namespace=namespace, name=name, **kwargs
        )

    def create(self, ctx, obj):
        kind = obj.get("kind")
        metadata = obj.get("metadata", {})
        namespace, name = metadata.get("namespace"), metadata.get("name")
        if kind == POD:
            fn = self.core_api.create_namespaced_pod
        elif kind == SECRET:
            fn = self.core_api.create_namespaced_secret
        else:
            raise StoreError(f"Unsupported kind for create: {kind}")
        return self._call(
            ctx, "create", kind, namespace, name, fn, namespace=namespace, body=obj
        )

    def update_status(self, ctx, obj):
        kind = obj.get("kind")
        if kind != HELLOWORLD:
            raise StoreError(f"Unsupported kind for status update: {kind}")
        metadata = obj.get("metadata", {})
        namespace, name = metadata.get("namespace"), metadata.get("name")
        return self._call(
            ctx,
            "update_status",
            kind,
            namespace,
            name,
            self.custom_api.replace_namespaced_custom_object_status,
            group=GROUP,
            version=VERSION,
            namespace=namespace,
            plural=PLURAL,
            name=name,
            body=obj,
        )
