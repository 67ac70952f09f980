"""Manifest application and rollout management.

This module applies the rendered manifest to the cluster, converts services
that switched to private visibility, and waits for rollouts to complete.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from ..errors import DeploymentError
from ..utils.console_like import ConsoleLike, coalesce_console
from .constants import DeploymentConstants, DeploymentPaths

if TYPE_CHECKING:
    from .shell_commands import CommandResult, ShellCommands

# Service types that expose node ports and must be reset before becoming ClusterIP
EXPOSED_SERVICE_TYPES = ("NodePort", "LoadBalancer")

_CLUSTER_IP_PATCH: list[dict[str, Any]] = [
    {"op": "remove", "path": "/spec/externalTrafficPolicy"},
    {"op": "remove", "path": "/spec/ports/0/nodePort"},
    {"op": "remove", "path": "/spec/ports/1/nodePort"},
    {"op": "replace", "path": "/spec/type", "value": "ClusterIP"},
]

SERVICE_PATCH: list[dict[str, Any]] = [
    {"op": "remove", "path": "/spec/loadBalancerSourceRanges"},
    *_CLUSTER_IP_PATCH,
]

# Services created without source ranges reject removing them
SERVICE_PATCH_WITHOUT_SOURCE_RANGES = _CLUSTER_IP_PATCH


class ManifestManager:
    """Applies rendered manifests and monitors the resulting rollouts.

    Handles:
    - Client-side dry-run validation of the manifest
    - Converting exposed services to ClusterIP
    - Manifest application
    - Rollout status monitoring and canary scaling
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: ConsoleLike | None = None,
        paths: DeploymentPaths | None = None,
        constants: DeploymentConstants | None = None,
    ) -> None:
        """Initialize the manifest manager.

        Args:
            commands: Shell command executor
            console: Console for progress output
            paths: Deployment path resolver
            constants: Optional deployment constants
        """
        self.commands = commands
        self.console = coalesce_console(console)
        self.paths = paths or DeploymentPaths()
        self.constants = constants or DeploymentConstants()

    def _check(self, result: CommandResult, message: str) -> None:
        if not result.success:
            raise DeploymentError(
                message,
                details=result.stderr.strip()
                or f"Command exited with status {result.returncode}",
            )

    def validate(self, namespace: str) -> None:
        """Validate the rendered manifest with a client-side dry-run.

        Raises:
            DeploymentError: If kubectl rejects the manifest
        """
        self.console.info(f"Validating {self.paths.manifest} with a dry-run...")
        result = self.commands.kubectl.apply(
            self.paths.manifest, namespace, dry_run=True
        )
        self._check(result, "Dry-run of the rendered manifest failed")

    def patch_service_if_required(self, name: str, namespace: str) -> None:
        """Convert an existing NodePort or LoadBalancer service to ClusterIP.

        Applying a ClusterIP manifest over an exposed service fails, so the
        fields tied to exposure are removed first. A failed lookup usually
        means the service does not exist yet and needs no patch.

        Args:
            name: Service name
            namespace: Target Kubernetes namespace

        Raises:
            DeploymentError: If the service needs a patch and none applies
        """
        lookup = self.commands.kubectl.get_service_type(name, namespace)
        if not lookup.success:
            logger.info(
                f"Could not determine type of service {name}, assuming no patch is needed: "
                f"{lookup.stderr.strip()}"
            )
            return

        service_type = lookup.stdout.strip()
        if service_type not in EXPOSED_SERVICE_TYPES:
            return

        self.console.info(f"Service {name} is of type {service_type}, patching to ClusterIP...")
        kubectl = self.commands.kubectl
        result = kubectl.patch_json("service", name, namespace, SERVICE_PATCH)
        if not result.success:
            logger.info(f"Retrying patch of service {name} without loadBalancerSourceRanges")
            result = kubectl.patch_json(
                "service", name, namespace, SERVICE_PATCH_WITHOUT_SOURCE_RANGES
            )
        self._check(result, f"Failed patching service {name} to ClusterIP")
        self.console.ok(f"Service {name} patched to ClusterIP")

    def apply(self, namespace: str) -> None:
        """Apply the rendered manifest.

        Raises:
            DeploymentError: If kubectl apply fails
        """
        self.console.info(f"Applying {self.paths.manifest} to namespace {namespace}...")
        result = self.commands.kubectl.apply(self.paths.manifest, namespace)
        self._check(result, f"Applying manifest to namespace {namespace} failed")

    def wait_for_rollout(self, name: str, namespace: str) -> None:
        """Wait for the rollout of a deployment to complete.

        Raises:
            DeploymentError: If the rollout does not succeed
        """
        self.console.info(f"Waiting for rollout of deployment {name}...")
        result = self.commands.kubectl.rollout_status("deployment", name, namespace)
        self._check(result, f"Rollout of deployment {name} failed")
        self.console.ok(f"Deployment {name} rolled out")

    def scale(self, name: str, namespace: str, replicas: int) -> None:
        """Scale a deployment to a fixed number of replicas.

        Raises:
            DeploymentError: If scaling fails
        """
        self.console.info(f"Scaling deployment {name} to {replicas} replica(s)...")
        result = self.commands.kubectl.scale("deploy", name, namespace, replicas)
        self._check(result, f"Scaling deployment {name} to {replicas} failed")
