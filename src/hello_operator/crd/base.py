"""Pydantic building blocks shared by custom resource models."""

from datetime import datetime
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class CRDSpec(BaseModel):
    """Desired state of a custom resource. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class CRDMetadata(BaseModel):
    """The parts of ``metadata`` the reconciler reads or sends back."""

    model_config = ConfigDict(extra="ignore")

    name: str
    namespace: Optional[str] = None
    uid: Optional[str] = None
    generation: Optional[int] = None
    resourceVersion: Optional[str] = None
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)


class CRDCondition(BaseModel):
    """Immutable status condition in the ``metav1.Condition`` shape."""

    model_config = ConfigDict(frozen=True)

    type: str
    status: str
    reason: str
    message: str
    lastTransitionTime: Optional[datetime] = None
    observedGeneration: Optional[int] = None


class CRDStatus(BaseModel):
    """Observed state. Fields written by other controllers are kept."""

    model_config = ConfigDict(extra="allow")

    phase: Optional[str] = None
    observedGeneration: Optional[int] = None
    conditions: Tuple[CRDCondition, ...] = ()
