"""Deployment strategies and their reconciliation against the cluster.

Each release action maps to a Strategy describing which steps converge the
cluster to the desired state: whether the rendered manifest is applied, how
the canary deployment is scaled and which leftovers are cleaned up.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..config.models import DeployAction, Params, Visibility
from ..errors import DeploymentError
from ..utils.console_like import ConsoleLike, coalesce_console
from .cleanup import CleanupManager
from .constants import DeploymentConstants, DeploymentPaths
from .diagnostics import DiagnosticsCollector
from .manifests import ManifestManager

if TYPE_CHECKING:
    from .shell_commands import ShellCommands


class CleanupStep(str, Enum):
    """Cleanup performed after the manifest step."""

    SIMPLE_TRACK = "simple-track"
    CANARY_TRACK = "canary-track"
    STABLE_TRACK = "stable-track"
    UNUSED_CONFIGS = "unused-configs"
    UNUSED_SECRETS = "unused-secrets"
    PUBLIC_INGRESS = "public-ingress"
    CLOUDFLARE_ANNOTATIONS = "cloudflare-annotations"


@dataclass(frozen=True)
class Strategy:
    """Steps that converge the cluster for one action.

    Attributes:
        applies_manifest: Dry-run, apply and wait for the rendered manifest
        canary_replicas: Replica count for the canary deployment, None to leave it
        cleanup: Cleanup steps, in execution order
    """

    applies_manifest: bool
    canary_replicas: int | None = None
    cleanup: tuple[CleanupStep, ...] = ()


STRATEGIES: dict[DeployAction, Strategy] = {
    DeployAction.DEPLOY_CANARY: Strategy(
        applies_manifest=True,
        canary_replicas=1,
        cleanup=(CleanupStep.UNUSED_CONFIGS, CleanupStep.UNUSED_SECRETS),
    ),
    DeployAction.DEPLOY_STABLE: Strategy(
        applies_manifest=True,
        canary_replicas=0,
        cleanup=(
            CleanupStep.SIMPLE_TRACK,
            CleanupStep.UNUSED_CONFIGS,
            CleanupStep.UNUSED_SECRETS,
            CleanupStep.PUBLIC_INGRESS,
            CleanupStep.CLOUDFLARE_ANNOTATIONS,
        ),
    ),
    DeployAction.ROLLBACK_CANARY: Strategy(applies_manifest=False, canary_replicas=0),
    DeployAction.DEPLOY_SIMPLE: Strategy(
        applies_manifest=True,
        cleanup=(
            CleanupStep.CANARY_TRACK,
            CleanupStep.STABLE_TRACK,
            CleanupStep.UNUSED_CONFIGS,
            CleanupStep.UNUSED_SECRETS,
            CleanupStep.PUBLIC_INGRESS,
            CleanupStep.CLOUDFLARE_ANNOTATIONS,
        ),
    ),
}


@dataclass(frozen=True)
class DeploymentIdentity:
    """Names an application deployment is addressed by.

    Attributes:
        name: Application name; also the service and ingress name
        name_with_track: Deployment name including the track suffix
        namespace: Target Kubernetes namespace
    """

    name: str
    name_with_track: str
    namespace: str

    @classmethod
    def for_action(cls, name: str, namespace: str, action: DeployAction) -> DeploymentIdentity:
        """Build the identity of an application for an action's track."""
        track = action.track
        return cls(
            name=name,
            name_with_track=f"{name}-{track}" if track else name,
            namespace=namespace,
        )


class StrategyReconciler:
    """Runs the strategy of an action against the cluster.

    A rendered manifest is always validated with a client-side dry-run before
    anything is changed. Without a rendered manifest only the scale and
    cleanup steps run. Once changes start, diagnostics are collected when the
    pass ends, before an error propagates or after success.
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: ConsoleLike | None = None,
        diagnostics: DiagnosticsCollector | None = None,
        paths: DeploymentPaths | None = None,
        constants: DeploymentConstants | None = None,
    ) -> None:
        """Initialize the reconciler.

        Args:
            commands: Shell command executor
            console: Console for progress output
            diagnostics: Collector run when a mutating step fails
            paths: Deployment path resolver
            constants: Optional deployment constants
        """
        self.console = coalesce_console(console)
        self.constants = constants or DeploymentConstants()
        self.manifests = ManifestManager(
            commands=commands,
            console=self.console,
            paths=paths,
            constants=self.constants,
        )
        self.cleanup = CleanupManager(
            commands=commands,
            console=self.console,
            constants=self.constants,
        )
        self.diagnostics = diagnostics or DiagnosticsCollector(
            commands=commands,
            console=self.console,
            constants=self.constants,
        )

    def reconcile(
        self,
        params: Params,
        action: DeployAction,
        manifest_rendered: bool,
        identity: DeploymentIdentity,
    ) -> None:
        """Converge the cluster for an action.

        Args:
            params: Resolved deployment parameters
            action: Release action selecting the strategy
            manifest_rendered: Whether the manifest was written for this run;
                without it the manifest steps are skipped
            identity: Names of the application's objects

        Raises:
            DeploymentError: If validation or any cluster operation fails
        """
        strategy = STRATEGIES[action]
        namespace = identity.namespace
        apply_manifest = strategy.applies_manifest and manifest_rendered

        if apply_manifest:
            self.manifests.validate(namespace)

        if params.dry_run:
            self.console.ok("Dry run, no changes applied to the cluster")
            return

        try:
            self._converge(params, strategy, identity, apply_manifest)
        except DeploymentError:
            self.diagnostics.collect(params.app, namespace, action)
            raise

        self.diagnostics.collect(params.app, namespace, action)
        self.console.ok(f"Finished {action.value} of {identity.name_with_track}")

    def _converge(
        self,
        params: Params,
        strategy: Strategy,
        identity: DeploymentIdentity,
        apply_manifest: bool,
    ) -> None:
        namespace = identity.namespace

        if apply_manifest:
            if params.visibility == Visibility.PRIVATE:
                self.manifests.patch_service_if_required(identity.name, namespace)
            self.manifests.apply(namespace)
            self.manifests.wait_for_rollout(identity.name_with_track, namespace)

        if strategy.canary_replicas is not None:
            self.manifests.scale(
                f"{identity.name}{self.constants.CANARY_SUFFIX}",
                namespace,
                strategy.canary_replicas,
            )

        for step in strategy.cleanup:
            self._run_cleanup(step, params, identity)

    def _run_cleanup(
        self, step: CleanupStep, params: Params, identity: DeploymentIdentity
    ) -> None:
        name = identity.name
        namespace = identity.namespace

        if step == CleanupStep.SIMPLE_TRACK:
            self.cleanup.delete_track_objects(name, namespace)
        elif step == CleanupStep.CANARY_TRACK:
            self.cleanup.delete_track_objects(
                f"{name}{self.constants.CANARY_SUFFIX}", namespace
            )
        elif step == CleanupStep.STABLE_TRACK:
            self.cleanup.delete_track_objects(
                f"{name}{self.constants.STABLE_SUFFIX}", namespace
            )
        elif step == CleanupStep.UNUSED_CONFIGS:
            self.cleanup.delete_unused_configs(params, identity.name_with_track, namespace)
        elif step == CleanupStep.UNUSED_SECRETS:
            self.cleanup.delete_unused_secrets(params, identity.name_with_track, namespace)
        elif step == CleanupStep.PUBLIC_INGRESS:
            self.cleanup.delete_public_ingress(params, name, namespace)
        elif step == CleanupStep.CLOUDFLARE_ANNOTATIONS:
            self.cleanup.remove_cloudflare_annotations(params, name, namespace)
