"""Gcloud command abstractions.

This module provides the gcloud operations needed to authenticate against
Google Cloud and fetch Kubernetes Engine cluster credentials.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class GcloudCommands:
    """Gcloud-related shell commands."""

    def __init__(self, runner: CommandRunner) -> None:
        """Initialize gcloud commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    def activate_service_account(self, email: str, key_file: Path) -> CommandResult:
        """Authenticate as a service account using its key file."""
        return self._runner.run(
            [
                "gcloud",
                "auth",
                "activate-service-account",
                email,
                "--key-file",
                str(key_file),
            ]
        )

    def set_config(self, key: str, value: str) -> CommandResult:
        """Set a gcloud configuration property (account, project, ...)."""
        return self._runner.run(["gcloud", "config", "set", key, value])

    def get_cluster_credentials(
        self, cluster: str, location_args: Sequence[str]
    ) -> CommandResult:
        """Write kubeconfig credentials for a Kubernetes Engine cluster.

        Args:
            cluster: Cluster name
            location_args: ``["--zone", zone]`` or ``["--region", region]``
        """
        return self._runner.run(
            ["gcloud", "container", "clusters", "get-credentials", cluster]
            + list(location_args)
        )
