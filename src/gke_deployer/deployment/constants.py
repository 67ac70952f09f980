"""Deployment constants and configuration.

This module centralizes all magic strings, paths, and configuration values
used throughout the deployment process.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DeploymentConstants:
    """Constants for Kubernetes Engine deployments.

    All attributes are class-level and immutable.
    """

    # Well-known artifact locations inside the extension container
    MANIFEST_PATH: str = "/kubernetes.yaml"
    KEY_FILE_PATH: str = "/key-file.json"
    TEMPLATES_DIR: str = "/templates"
    WORK_DIR: str = "/estafette-work"

    # Artifacts contain secrets, so only the owner may read them
    ARTIFACT_FILE_MODE: int = 0o600

    # Object naming
    CANARY_SUFFIX: str = "-canary"
    STABLE_SUFFIX: str = "-stable"
    CONFIGS_SUFFIX: str = "-configs"
    SECRETS_SUFFIX: str = "-secrets"

    # Resource types listed when collecting diagnostics
    DIAGNOSTIC_RESOURCE_TYPES: str = "ing,svc,cm,secret,deploy,pdb,hpa,po,ep"

    # Service annotations that moved to the ingress for private/iap services
    CLOUDFLARE_ANNOTATIONS: tuple[str, ...] = (
        "estafette.io/cloudflare-dns",
        "estafette.io/cloudflare-proxy",
        "estafette.io/cloudflare-hostnames",
        "estafette.io/cloudflare-state",
    )


class DeploymentPaths:
    """Path resolver for deployment-related directories and files."""

    def __init__(
        self,
        templates_dir: Path | None = None,
        work_dir: Path | None = None,
        manifest_path: Path | None = None,
        key_file_path: Path | None = None,
    ) -> None:
        """Initialize deployment paths.

        Args:
            templates_dir: Directory holding the built-in manifest templates
            work_dir: Pipeline working directory (repository checkout)
            manifest_path: Where the rendered manifest is written
            key_file_path: Where the service account key file is written
        """
        constants = DeploymentConstants()
        self.templates_dir = templates_dir or Path(constants.TEMPLATES_DIR)
        self.work_dir = work_dir or Path(constants.WORK_DIR)
        self.manifest = manifest_path or Path(constants.MANIFEST_PATH)
        self.key_file = key_file_path or Path(constants.KEY_FILE_PATH)
