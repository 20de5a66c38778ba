import logging
import os
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sbomscan.consts import (
    CURRENT_DIR,
    DEFAULT_CONSOLE_PORT,
    DEFAULT_PACKAGE_SCAN_CONCURRENCY,
    DEFAULT_PLUGIN_NAME,
    DIR_SCHEME,
    ENV_CONSOLE_PORT,
    ENV_CONSOLE_URL,
    ENV_DEEPFENCE_KEY,
    ENV_SCAN_CONCURRENCY,
    REGISTRY_SCHEME,
)

logger = logging.getLogger(__name__)


class NodeType(str, Enum):
    """Kinds of scan targets."""

    HOST = "host"
    CONTAINER = "container"
    IMAGE = "container_image"


class GateThresholds(BaseModel):
    """Policy limits; a limit <= 0 disables its gate."""

    model_config = ConfigDict(frozen=True)

    fail_on_count: int = Field(default=-1, description="Total vulnerability count limit")
    fail_on_critical_count: int = Field(default=-1)
    fail_on_high_count: int = Field(default=-1)
    fail_on_medium_count: int = Field(default=-1)
    fail_on_low_count: int = Field(default=-1)
    fail_on_score: float = Field(default=-1.0, description="Aggregate CVE score limit")

    @property
    def any_enabled(self) -> bool:
        """Whether at least one gate is active."""
        return (
            self.fail_on_count > 0
            or self.fail_on_critical_count > 0
            or self.fail_on_high_count > 0
            or self.fail_on_medium_count > 0
            or self.fail_on_low_count > 0
            or self.fail_on_score > 0
        )


class ScanRequest(BaseModel):
    """A single SBOM generation request."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(description="Target locator, optionally prefixed with dir: or registry:")
    node_type: NodeType | str = Field(default="", description="Node type hint or resolved type")
    node_id: str = Field(default="", description="Resolved node identity")
    scan_type: str = Field(default="", description="Comma separated ecosystem tags or 'all'")
    scan_id: str = ""
    registry_id: str = ""
    host_name: str = ""
    image_id: str = ""
    container_name: str = ""
    container_id: str = ""
    kubernetes_cluster_name: str = ""
    quiet: bool = False
    vulnerability_scan: bool = False
    output: str = Field(default="", description="File to write the SBOM to (CLI only)")
    thresholds: GateThresholds = Field(default_factory=GateThresholds)

    @property
    def is_directory(self) -> bool:
        """Whether the target is a filesystem path rather than an image or container."""
        return self.source.startswith(DIR_SCHEME) or self.source == CURRENT_DIR

    @property
    def is_registry(self) -> bool:
        return self.source.startswith(REGISTRY_SCHEME)


class GenerateSbomPayload(BaseModel):
    """Body of a service GenerateSBOM call."""

    source: str = Field(min_length=1)
    node_type: str = ""
    scan_type: str = ""
    scan_id: str = ""
    host_name: str = ""
    image_id: str = ""
    container_name: str = ""
    container_id: str = ""
    kubernetes_cluster_name: str = ""
    registry_id: str = ""


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        value = int(raw)
    except ValueError:
        if raw:
            logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default
    if value <= 0:
        logger.warning(f"Non-positive {name}={value}, using default {default}")
        return default
    return value


class ServiceConfig(BaseModel):
    """Process-wide configuration, fixed at startup."""

    model_config = ConfigDict(frozen=True)

    port: str = ""
    socket_path: str = ""
    plugin_name: str = DEFAULT_PLUGIN_NAME
    scan_concurrency: int = Field(default=DEFAULT_PACKAGE_SCAN_CONCURRENCY, gt=0)
    console_url: str = ""
    console_port: str = DEFAULT_CONSOLE_PORT
    deepfence_key: str = ""

    @field_validator("console_port")
    @classmethod
    def _default_port(cls, value: str) -> str:
        return value or DEFAULT_CONSOLE_PORT

    @classmethod
    def from_env(cls, **overrides) -> "ServiceConfig":
        """Build configuration from the environment, with explicit overrides on top.

        Args:
            **overrides: Field values taking precedence over the environment
                (typically CLI options such as port or socket_path).

        Returns:
            ServiceConfig instance
        """
        values = {
            "scan_concurrency": _int_from_env(
                ENV_SCAN_CONCURRENCY, DEFAULT_PACKAGE_SCAN_CONCURRENCY
            ),
            "console_url": os.getenv(ENV_CONSOLE_URL, ""),
            "console_port": os.getenv(ENV_CONSOLE_PORT, "") or DEFAULT_CONSOLE_PORT,
            "deepfence_key": os.getenv(ENV_DEEPFENCE_KEY, ""),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
