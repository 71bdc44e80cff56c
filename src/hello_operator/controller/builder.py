"""Desired pod manifest for a HelloWorld object."""

import copy
import logging

import jinja2
import yaml

from hello_operator.exceptions import OwnershipError
from hello_operator.models.helloworld import API_VERSION, KIND

logger = logging.getLogger(__name__)

POD_IMAGE = "busybox:latest"
POD_REQUESTS = {"cpu": "50m", "memory": "64Mi"}
POD_LIMITS = {"cpu": "100m", "memory": "128Mi"}
POD_TEMPLATE = "helloworld-pod.yaml.j2"
DEFAULT_PULL_SECRET = "registry-credentials"

_environment = None


def _shell_quote(value):
    return "'" + str(value).replace("'", "'\"'\"'") + "'"


def _template_environment():
    global _environment
    if _environment is None:
        _environment = jinja2.Environment(
            loader=jinja2.PackageLoader("hello_operator", "templates"),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=jinja2.StrictUndefined,
        )
        _environment.filters["shell_quote"] = _shell_quote
    return _environment


def pod_name_for(name):
    """Deterministic name of the pod managed by the HelloWorld ``name``."""
    return f"{name}-pod"


def render_pod_template(spec, name, namespace, pull_secret=DEFAULT_PULL_SECRET):
    template = _template_environment().get_template(POD_TEMPLATE)
    return template.render(
        name=name,
        namespace=namespace,
        pod_name=pod_name_for(name),
        message=spec.message,
        image=POD_IMAGE,
        requests=POD_REQUESTS,
        limits=POD_LIMITS,
        pull_secret=pull_secret,
    )


def build_desired_pod(spec, name, namespace, pull_secret=DEFAULT_PULL_SECRET):
    """Build the pod manifest for a HelloWorld spec.

    The result depends only on the arguments, so calling it twice with the
    same spec and name yields identical manifests.

    Args:
        spec: HelloWorldSpec of the owning object
        name: Name of the owning HelloWorld
        namespace: Namespace of the owning HelloWorld
        pull_secret: Image pull secret to reference, or None
    """
    return yaml.safe_load(render_pod_template(spec, name, namespace, pull_secret))


def serialize_manifest(manifest):
    """Canonical YAML text of a manifest."""
    return yaml.safe_dump(manifest, sort_keys=True, default_flow_style=False)


def set_controller_reference(owner, pod):
    """Return a copy of ``pod`` controlled by ``owner``.

    Raises:
        OwnershipError: owner has no identity, lives in another namespace,
            or the pod is already controlled by a different object
    """
    owner_meta = owner.metadata
    if not owner_meta.uid or not owner_meta.name:
        raise OwnershipError(
            f"Owner {owner_meta.namespace}/{owner_meta.name} has no uid, "
            "cannot set controller reference"
        )

    pod = copy.deepcopy(pod)
    metadata = pod.setdefault("metadata", {})
    if metadata.get("namespace") != owner_meta.namespace:
        raise OwnershipError(
            f"Cross-namespace owner reference from {metadata.get('namespace')} "
            f"to {owner_meta.namespace} is not allowed"
        )

    refs = []
    for ref in metadata.get("ownerReferences") or []:
        if ref.get("uid") == owner_meta.uid:
            continue
        if ref.get("controller"):
            raise OwnershipError(
                f"Object {metadata.get('name')} is already controlled by "
                f"{ref.get('kind')} {ref.get('name')}"
            )
        refs.append(ref)

    refs.append(
        {
            "apiVersion": API_VERSION,
            "kind": KIND,
            "name": owner_meta.name,
            "uid": owner_meta.uid,
            "controller": True,
            "blockOwnerDeletion": True,
        }
    )
    metadata["ownerReferences"] = refs
    return pod


def is_controlled_by(pod, owner):
    for ref in pod.get("metadata", {}).get("ownerReferences") or []:
        if ref.get("controller") and ref.get("uid") == owner.metadata.uid:
            return True
    return False
