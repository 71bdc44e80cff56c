"""In-memory test doubles for the resource store."""

import copy
import itertools

from hello_operator.exceptions import AlreadyExistsError, ConflictError, NotFoundError
from hello_operator.store import POD, ResourceStore

NAMESPACE = "demo"
NAME = "greeting"
SOURCE_NAMESPACE = "hello-operator-system"
PULL_SECRET = "registry-credentials"


def helloworld_object(name=NAME, namespace=NAMESPACE, message="hi", **metadata):
    return {
        "apiVersion": "apps.example.com/v1",
        "kind": "HelloWorld",
        "metadata": {"name": name, "namespace": namespace, **metadata},
        "spec": {"message": message},
    }


class FakeStore(ResourceStore):
    """Dict backed ResourceStore that enforces resourceVersion on status writes."""

    def __init__(self):
        self.objects = {}
        self.writes = []
        self._failures = {}
        self._versions = itertools.count(1)
        self._uids = itertools.count(1)

    def _key(self, obj):
        metadata = obj["metadata"]
        return (obj["kind"], metadata.get("namespace"), metadata["name"])

    def add(self, obj):
        """Seed an object without recording a write."""
        stored = copy.deepcopy(obj)
        metadata = stored["metadata"]
        metadata.setdefault("uid", f"uid-{next(self._uids)}")
        metadata.setdefault("generation", 1)
        metadata["resourceVersion"] = str(next(self._versions))
        self.objects[self._key(stored)] = stored
        return copy.deepcopy(stored)

    def fail(self, action, kind, error):
        """Make every ``action`` on ``kind`` raise ``error``."""
        self._failures[(action, kind)] = error

    def _maybe_fail(self, action, kind):
        error = self._failures.get((action, kind))
        if error is not None:
            raise error

    def get(self, ctx, kind, namespace, name):
        ctx.check()
        self._maybe_fail("get", kind)
        try:
            return copy.deepcopy(self.objects[(kind, namespace, name)])
        except KeyError:
            raise NotFoundError(f"{kind} {namespace}/{name} not found", status=404)

    def create(self, ctx, obj):
        ctx.check()
        self._maybe_fail("create", obj["kind"])
        key = self._key(obj)
        if key in self.objects:
            raise AlreadyExistsError(f"{key} already exists", status=409)
        stored = copy.deepcopy(obj)
        stored["metadata"]["uid"] = f"uid-{next(self._uids)}"
        stored["metadata"]["resourceVersion"] = str(next(self._versions))
        if obj["kind"] == POD:
            # The API server reports new pods as Pending.
            stored["status"] = {"phase": "Pending"}
        self.objects[key] = stored
        self.writes.append(("create",) + key)
        return copy.deepcopy(stored)

    def update_status(self, ctx, obj):
        ctx.check()
        self._maybe_fail("update_status", obj["kind"])
        key = self._key(obj)
        if key not in self.objects:
            raise NotFoundError(f"{key} not found", status=404)
        current = self.objects[key]
        expected = obj["metadata"].get("resourceVersion")
        if expected and expected != current["metadata"]["resourceVersion"]:
            raise ConflictError(f"{key} has been modified", status=409)
        current["status"] = copy.deepcopy(obj["status"])
        current["metadata"]["resourceVersion"] = str(next(self._versions))
        self.writes.append(("update_status",) + key)
        return copy.deepcopy(current)

    def set_pod_phase(self, namespace, name, phase):
        pod = self.objects[(POD, namespace, name)]
        pod["status"] = {"phase": phase}
        pod["metadata"]["resourceVersion"] = str(next(self._versions))

    def status_of(self, kind, namespace, name):
        return copy.deepcopy(self.objects[(kind, namespace, name)].get("status") or {})


class FakeClock:
    """Deterministic clock for status timestamps."""

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now = self.now + delta
