"""CRD management system for konnektor operator."""

from .registry import CRDInfo, CRDRegistry
from .base import CRDSpec, CRDStatus, CRDCondition, CRDMetadata

__all__ = ["CRDInfo", "CRDRegistry", "CRDSpec", "CRDStatus", "CRDCondition", "CRDMetadata"]
