"""Pydantic models and dataclasses for sbomscan."""

from sbomscan.models.model_request import (
    GateThresholds,
    GenerateSbomPayload,
    NodeType,
    ScanRequest,
    ServiceConfig,
)
from sbomscan.models.model_scanner import (
    ExecutionPlan,
    GateBreach,
    GateKind,
    ScanOutcome,
    ScanPhase,
    SeverityCounts,
    VulnerabilityScanDetail,
)

__all__ = [
    # Request models
    "GateThresholds",
    "GenerateSbomPayload",
    "NodeType",
    "ScanRequest",
    "ServiceConfig",
    # Scan models
    "ExecutionPlan",
    "GateBreach",
    "GateKind",
    "ScanOutcome",
    "ScanPhase",
    "SeverityCounts",
    "VulnerabilityScanDetail",
]
