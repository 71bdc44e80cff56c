"""Custom resource models, registry and CRD generation."""

from .base import CRDCondition, CRDMetadata, CRDSpec, CRDStatus
from .registry import CRDRegistry, CRDResource

__all__ = [
    "CRDCondition",
    "CRDMetadata",
    "CRDRegistry",
    "CRDResource",
    "CRDSpec",
    "CRDStatus",
]
