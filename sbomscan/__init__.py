"""sbomscan - SBOM generation orchestrator with vulnerability gating."""

__version__ = "0.1.0"
