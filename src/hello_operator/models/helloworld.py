"""HelloWorld CRD models."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from hello_operator.crd.base import CRDMetadata, CRDSpec, CRDStatus
from hello_operator.crd.registry import CRDRegistry

GROUP = "apps.example.com"
VERSION = "v1"
KIND = "HelloWorld"
PLURAL = "helloworlds"
API_VERSION = f"{GROUP}/{VERSION}"


class Phase(str, Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


class ConditionType(str, Enum):
    READY = "Ready"
    PROGRESSING = "Progressing"
    DEGRADED = "Degraded"


class ConditionStatus(str, Enum):
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class NamespacedName(NamedTuple):
    """Reconcile key for a HelloWorld object."""

    namespace: str
    name: str

    def __str__(self):
        return f"{self.namespace}/{self.name}"


class HelloWorldStatus(CRDStatus):
    """Status sub-resource written by the reconciler."""

    phase: Optional[Phase] = None
    managedResourceName: str = Field(
        default="", description="Name of the pod associated with this resource"
    )
    message: str = Field(default="", description="Explanation of the current phase")
    lastUpdateTime: Optional[datetime] = None


@CRDRegistry.register(GROUP, VERSION, KIND, PLURAL, status=HelloWorldStatus)
class HelloWorldSpec(CRDSpec):
    """HelloWorld CRD specification."""

    message: str = Field(..., description="Message printed by the managed pod")


class HelloWorld(BaseModel):
    """A HelloWorld object as read from the API server."""

    model_config = ConfigDict(extra="ignore")

    apiVersion: str = API_VERSION
    kind: str = KIND
    metadata: CRDMetadata
    spec: HelloWorldSpec
    status: HelloWorldStatus = Field(default_factory=HelloWorldStatus)

    @classmethod
    def from_object(cls, obj: Dict[str, Any]) -> "HelloWorld":
        body = dict(obj)
        if body.get("status") is None:
            body.pop("status", None)
        return cls.model_validate(body)

    @property
    def key(self) -> NamespacedName:
        return NamespacedName(self.metadata.namespace or "", self.metadata.name)

    def status_is_current(self) -> bool:
        """Status reflects the latest spec only when the generations agree."""
        return (
            self.status.observedGeneration is not None
            and self.status.observedGeneration == self.metadata.generation
        )

    def status_body(self, status: HelloWorldStatus) -> Dict[str, Any]:
        """Body for a status sub-resource write guarded by resourceVersion."""
        metadata = self.metadata.model_dump(exclude_none=True)
        return {
            "apiVersion": self.apiVersion,
            "kind": self.kind,
            "metadata": metadata,
            "spec": self.spec.model_dump(mode="json"),
            "status": status.model_dump(mode="json", exclude_none=True),
        }
