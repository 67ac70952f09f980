"""Kubectl command abstractions.

This module provides the kubectl operations needed to apply manifests,
converge deployment tracks and collect diagnostics.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class KubectlCommands:
    """Kubectl-related shell commands.

    Provides operations for:
    - Manifest application (dry-run and real)
    - Deployment operations (rollout status, scale)
    - Resource deletion and patching
    - Troubleshooting queries (resources by label, logs, events)
    """

    def __init__(self, runner: CommandRunner) -> None:
        """Initialize kubectl commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    # =========================================================================
    # Manifests
    # =========================================================================

    def apply(
        self, manifest: Path, namespace: str, *, dry_run: bool = False
    ) -> CommandResult:
        """Apply a manifest file to a namespace.

        Args:
            manifest: Path to the rendered manifest
            namespace: Target namespace
            dry_run: Only validate the manifest client-side
        """
        cmd = ["kubectl", "apply", "-f", str(manifest), "-n", namespace]
        if dry_run:
            cmd.append("--dry-run=client")
        return self._runner.run(cmd)

    # =========================================================================
    # Deployment Operations
    # =========================================================================

    def rollout_status(
        self, resource_type: str, name: str, namespace: str
    ) -> CommandResult:
        """Wait for a rollout to complete."""
        return self._runner.run(
            ["kubectl", "rollout", "status", resource_type, name, "-n", namespace]
        )

    def scale(
        self, resource_type: str, name: str, namespace: str, replicas: int
    ) -> CommandResult:
        """Scale a deployment to a specific number of replicas."""
        return self._runner.run(
            [
                "kubectl",
                "scale",
                resource_type,
                name,
                "-n",
                namespace,
                f"--replicas={replicas}",
            ]
        )

    # =========================================================================
    # Resource Management
    # =========================================================================

    def delete(
        self,
        resource_type: str,
        name: str,
        namespace: str,
        *,
        ignore_not_found: bool = True,
    ) -> CommandResult:
        """Delete a single resource.

        Args:
            resource_type: Kind or short name (deploy, configmap, secret, ...)
            name: Resource name
            namespace: Namespace of the resource
            ignore_not_found: Succeed when the resource does not exist
        """
        cmd = ["kubectl", "delete", resource_type, name, "-n", namespace]
        if ignore_not_found:
            cmd.append("--ignore-not-found=true")
        return self._runner.run(cmd)

    def get_service_type(self, name: str, namespace: str) -> CommandResult:
        """Look up ``.spec.type`` of a service; stdout holds the type."""
        return self._runner.run(
            [
                "kubectl",
                "get",
                "service",
                name,
                "-n",
                namespace,
                "-o=jsonpath={.spec.type}",
            ],
            capture_output=True,
        )

    def patch_json(
        self,
        resource_type: str,
        name: str,
        namespace: str,
        operations: list[dict[str, Any]],
    ) -> CommandResult:
        """Apply a JSON patch to a resource."""
        return self._runner.run(
            [
                "kubectl",
                "patch",
                resource_type,
                name,
                "-n",
                namespace,
                "--type",
                "json",
                "--patch",
                json.dumps(operations),
            ]
        )

    def remove_annotation(
        self, resource_type: str, name: str, namespace: str, annotation: str
    ) -> CommandResult:
        """Remove an annotation from a resource (no-op if it is not set)."""
        return self._runner.run(
            ["kubectl", "annotate", resource_type, name, "-n", namespace, f"{annotation}-"]
        )

    # =========================================================================
    # Troubleshooting
    # =========================================================================

    def get_by_label(
        self, resource_types: str, label_selector: str, namespace: str
    ) -> CommandResult:
        """List resources of the given types matching a label selector."""
        return self._runner.run(
            ["kubectl", "get", resource_types, "-l", label_selector, "-n", namespace],
            capture_output=True,
        )

    def logs(self, label_selector: str, namespace: str, container: str) -> CommandResult:
        """Fetch logs of a container in all pods matching a label selector."""
        return self._runner.run(
            [
                "kubectl",
                "logs",
                "-l",
                label_selector,
                "-n",
                namespace,
                "-c",
                container,
            ],
            capture_output=True,
        )

    def get_events_matching(self, namespace: str, pattern: str) -> CommandResult:
        """List namespace events, oldest first, filtered to lines containing pattern."""
        return self._runner.run_pipeline(
            [
                "kubectl",
                "get",
                "events",
                "--sort-by=.metadata.creationTimestamp",
                "-n",
                namespace,
            ],
            ["grep", pattern],
        )
