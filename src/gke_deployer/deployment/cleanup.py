"""Post-deployment cleanup operations.

This module removes Kubernetes objects left behind by other deployment
tracks or by parameters that no longer declare them, and strips legacy
service annotations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..config.models import Params, Visibility
from ..errors import DeploymentError
from ..utils.console_like import ConsoleLike, coalesce_console
from .constants import DeploymentConstants

if TYPE_CHECKING:
    from .shell_commands import CommandResult, ShellCommands


class CleanupManager:
    """Manages cleanup of objects that are no longer part of a deployment.

    Handles:
    - Deleting the objects of another track after a type switch
    - Deleting config maps and secrets no longer declared in the parameters
    - Deleting the ingress of public services
    - Removing Cloudflare annotations from private and iap services

    Every deletion ignores objects that do not exist, so cleanup is safe to
    repeat. A failing command raises DeploymentError.
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: ConsoleLike | None = None,
        constants: DeploymentConstants | None = None,
    ) -> None:
        """Initialize the cleanup manager.

        Args:
            commands: Shell command executor
            console: Console for progress output
            constants: Optional deployment constants
        """
        self.commands = commands
        self.console = coalesce_console(console)
        self.constants = constants or DeploymentConstants()

    def _check(self, result: CommandResult, description: str) -> None:
        if not result.success:
            raise DeploymentError(
                f"Failed {description}",
                details=result.stderr.strip()
                or f"Command exited with status {result.returncode}",
            )

    def _delete(self, resource_type: str, name: str, namespace: str) -> None:
        result = self.commands.kubectl.delete(resource_type, name, namespace)
        self._check(result, f"deleting {resource_type} {name} in namespace {namespace}")

    def delete_track_objects(self, name: str, namespace: str) -> None:
        """Delete the deployment and its companion objects for a track name.

        Args:
            name: Track-qualified name (``app``, ``app-canary`` or ``app-stable``)
            namespace: Target Kubernetes namespace
        """
        self.console.info(f"Deleting objects of {name} in namespace {namespace}...")
        self._delete("deploy", name, namespace)
        self._delete("configmap", f"{name}{self.constants.CONFIGS_SUFFIX}", namespace)
        self._delete("secret", f"{name}{self.constants.SECRETS_SUFFIX}", namespace)
        self._delete("hpa", name, namespace)
        self._delete("pdb", name, namespace)

    def delete_unused_configs(self, params: Params, name: str, namespace: str) -> None:
        """Delete the config map of a track when no config files are declared."""
        if params.configs.files:
            return
        self._delete("configmap", f"{name}{self.constants.CONFIGS_SUFFIX}", namespace)

    def delete_unused_secrets(self, params: Params, name: str, namespace: str) -> None:
        """Delete the secret of a track when no secret keys are declared."""
        if params.secrets.keys:
            return
        self._delete("secret", f"{name}{self.constants.SECRETS_SUFFIX}", namespace)

    def delete_public_ingress(self, params: Params, name: str, namespace: str) -> None:
        """Delete the ingress of a public service; its load balancer replaces it."""
        if params.visibility != Visibility.PUBLIC:
            return
        self._delete("ingress", name, namespace)

    def remove_cloudflare_annotations(
        self, params: Params, name: str, namespace: str
    ) -> None:
        """Strip Cloudflare annotations from the service of a private or iap app.

        Those annotations live on the ingress for these visibilities; left on
        the service they would make the DNS controller point at the wrong
        address.
        """
        if params.visibility not in (Visibility.PRIVATE, Visibility.IAP):
            return

        for annotation in self.constants.CLOUDFLARE_ANNOTATIONS:
            result = self.commands.kubectl.remove_annotation(
                "svc", name, namespace, annotation
            )
            self._check(result, f"removing annotation {annotation} from service {name}")
