"""Data models for SBOM generation and vulnerability gating."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


@dataclass
class ExecutionPlan:
    """Arguments and environment for one cataloging tool run."""

    args: list[str]
    output_path: Path
    env: dict[str, str] = field(default_factory=dict)

    @property
    def locator(self) -> str:
        return self.args[1]


class ScanPhase(Enum):
    """Vulnerability gate states."""

    IDLE = "idle"
    GENERATING = "generating"
    SCANNING = "scanning"
    COMPLETED = "completed"
    FAILED = "failed"


class SeverityCounts(BaseModel):
    """Vulnerability counts by severity."""

    model_config = ConfigDict(frozen=True)

    critical: int = Field(default=0, ge=0)
    high: int = Field(default=0, ge=0)
    medium: int = Field(default=0, ge=0)
    low: int = Field(default=0, ge=0)


class VulnerabilityScanDetail(BaseModel):
    """Summary of a finished vulnerability scan, as reported by the console."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(default=0, ge=0)
    severity: SeverityCounts = Field(default_factory=SeverityCounts)
    cve_score: float = Field(default=0.0, ge=0.0)


class GateKind(Enum):
    """Policy gates in evaluation order."""

    TOTAL = "total"
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    SCORE = "score"


@dataclass(frozen=True)
class GateBreach:
    """First policy gate reached by a scan."""

    kind: GateKind
    value: float
    limit: float

    @property
    def message(self) -> str:
        if self.kind == GateKind.SCORE:
            return (
                f"Exit vulnerability scan. Vulnerability score ({self.value:f}) "
                f"reached/exceeded the limit ({self.limit:f})."
            )
        return (
            f"Exit vulnerability scan. Number of vulnerabilities ({int(self.value)}) "
            f"reached/exceeded the limit ({int(self.limit)})."
        )


@dataclass
class ScanOutcome:
    """Result of one SBOM generation run."""

    sbom: bytes
    detail: VulnerabilityScanDetail | None = None
    breach: GateBreach | None = None

    @property
    def passed(self) -> bool:
        return self.breach is None
