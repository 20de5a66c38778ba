"""Exceptions raised while generating and gating SBOMs."""


class SbomScanError(Exception):
    """Base class for SBOM scan errors."""


class ConfigurationError(SbomScanError):
    """Raised when the service or CLI is started with an unusable configuration."""


class RuntimeDetectionError(SbomScanError):
    """Raised when no supported container runtime could be detected."""


class ExtractionError(SbomScanError):
    """Raised when a container filesystem or image could not be exported or unpacked."""


class ToolExecutionError(SbomScanError):
    """Raised when the cataloging tool exits non-zero.

    The combined stdout/stderr of the tool is kept verbatim in ``output``.
    ``reported`` is set once the failure has been published to the console.
    """

    def __init__(self, message: str, output: str = "", returncode: int | None = None):
        super().__init__(message)
        self.output = output
        self.returncode = returncode
        self.reported = False


class ArtifactIOError(SbomScanError):
    """Raised when a temporary artifact cannot be created, read or written."""


class PublisherError(SbomScanError):
    """Raised when the management console rejects or fails a request."""

    def __init__(self, message: str, status_code: int | None = None, endpoint: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint
