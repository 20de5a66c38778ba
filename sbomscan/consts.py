import tempfile
from pathlib import Path

DEFAULT_TEMP_DIR = Path(tempfile.gettempdir())

# Syft invocation
SYFT_PATH = "syft"
SYFT_VERB = "packages"
SYFT_OUTPUT_FORMAT = "json"
SYFT_OUTPUT_SUFFIX = "output.json"
SYFT_RANDOM_NAME_LENGTH = 12
SYFT_TEMP_PREFIX = "syft-"
SYFT_INSECURE_ENV = {
    "SYFT_REGISTRY_INSECURE_SKIP_TLS_VERIFY": "true",
    "SYFT_REGISTRY_INSECURE_USE_HTTP": "true",
}

# Target locator schemes
DIR_SCHEME = "dir:"
REGISTRY_SCHEME = "registry:"
OCI_ARCHIVE_SCHEME = "oci-archive:"
DOCKER_ARCHIVE_SCHEME = "docker-archive:"
CURRENT_DIR = "."

# Directories never worth cataloging on a Linux host
LINUX_EXCLUDE_DIRS = [
    "/var/lib/docker",
    "/var/lib/containerd",
    "/var/lib/containers",
    "/var/lib/crio",
    "/var/run/containers",
    "/mnt",
    "/run",
    "/proc",
    "/dev",
    "/boot",
    "/home/kubernetes/containerized_mounter",
    "/sys",
    "/lost+found",
]

# Network and memory backed mounts, excluded from host scans
MOUNT_DISCOVERY_CMD = ["findmnt", "-l", "-t", "nfs4,tmpfs", "-n", "--output=TARGET"]

# Scan type tag -> syft catalogers
SCAN_TYPE_ALL = "all"
SCAN_TYPE_CATALOGERS: dict[str, list[str]] = {
    "base": ["dpkgdb-cataloger", "rpmdb-cataloger", "apkdb-cataloger", "alpmdb-cataloger"],
    "ruby": ["ruby-gemfile-cataloger", "ruby-gemspec-cataloger"],
    "python": ["python-index-cataloger", "python-package-cataloger"],
    "javascript": ["javascript-lock-cataloger", "javascript-package-cataloger"],
    "php": ["php-composer-installed-cataloger", "php-composer-lock-cataloger"],
    "golang": ["go-mod-file-cataloger"],
    "java": ["java-cataloger"],
    "rust": ["rust-cataloger"],
    "dotnet": ["dotnet-deps-cataloger"],
}

# Container runtimes, probed in this order
DOCKER_SOCKETS = ["/var/run/docker.sock"]
CONTAINERD_SOCKETS = ["/run/containerd/containerd.sock", "/run/k3s/containerd/containerd.sock"]
CRIO_SOCKETS = ["/var/run/crio/crio.sock"]
CONTAINERD_K8S_NAMESPACE = "k8s.io"
DEFAULT_CONTAINER_NAMESPACE = "default"

# Service configuration
ENV_SCAN_CONCURRENCY = "PACKAGE_SCAN_CONCURRENCY"
ENV_CONSOLE_URL = "MGMT_CONSOLE_URL"
ENV_CONSOLE_PORT = "MGMT_CONSOLE_PORT"
ENV_DEEPFENCE_KEY = "DEEPFENCE_KEY"
DEFAULT_PACKAGE_SCAN_CONCURRENCY = 5
DEFAULT_CONSOLE_PORT = "443"
DEFAULT_PLUGIN_NAME = "package-scanner"
SCAN_STARTED_MESSAGE = "sbom generation started"

# Management console API
CONSOLE_API_PREFIX = "/deepfence"
CONSOLE_AUTH_PATH = "/auth/token"
CONSOLE_SCAN_LOGS_PATH = "/ingest/vulnerabilities-scan-logs"
CONSOLE_SBOM_PATH = "/ingest/sbom"
CONSOLE_SCAN_STATUS_PATH = "/scan/status/vulnerability"
CONSOLE_SCAN_RESULTS_PATH = "/scan/results/count/vulnerability"
CONSOLE_REGISTRY_CREDENTIALS_PATH = "/registryaccount/{registry_id}/credentials"
CONSOLE_REQUEST_TIMEOUT = 30.0
CONSOLE_MAX_RETRIES = 5

# Scan status reporting
STATUS_GENERATING_SBOM = "GENERATING_SBOM"
STATUS_ERROR = "ERROR"
STATUS_HEARTBEAT_SECONDS = 30.0  # Re-publish the current phase this often
RESULTS_POLL_SECONDS = 10.0  # No deadline; the backend decides when results are ready
RESULTS_DONE_STATUSES = {"COMPLETE", "ERROR"}
