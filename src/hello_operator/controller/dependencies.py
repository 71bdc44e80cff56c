"""Image pull secret provisioning for HelloWorld namespaces."""

import logging

from hello_operator.exceptions import AlreadyExistsError, NotFoundError
from hello_operator.store import SECRET

logger = logging.getLogger(__name__)

MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
MANAGED_BY = "hello-operator"


def ensure_pull_secret(ctx, store, namespace, secret_name, source_namespace):
    """Ensure the image pull secret exists in the target namespace.

    The secret is copied from ``source_namespace`` when missing. A missing
    source is not an error since images that need no credential still run;
    losing a create race to another reconcile is not an error either.

    Raises:
        StoreError: reading the target/source or creating the copy failed
    """
    if not secret_name or namespace == source_namespace:
        return

    try:
        store.get(ctx, SECRET, namespace, secret_name)
        logger.debug(f"{secret_name} already exists in {namespace}")
        return
    except NotFoundError:
        pass

    try:
        source = store.get(ctx, SECRET, source_namespace, secret_name)
    except NotFoundError:
        logger.debug(
            f"Source secret {source_namespace}/{secret_name} not found, skipping copy"
        )
        return

    source_meta = source.get("metadata") or {}
    labels = dict(source_meta.get("labels") or {})
    labels[MANAGED_BY_LABEL] = MANAGED_BY
    secret = {
        "apiVersion": "v1",
        "kind": SECRET,
        "metadata": {
            "name": secret_name,
            "namespace": namespace,
            "labels": labels,
        },
        "type": source.get("type", "kubernetes.io/dockerconfigjson"),
        "data": source.get("data") or {},
    }

    try:
        store.create(ctx, secret)
        logger.info(f"Copied {secret_name} from {source_namespace} to {namespace}")
    except AlreadyExistsError:
        logger.debug(f"{secret_name} was created concurrently in {namespace}")
