"""Kubernetes Engine deployer.

This module provides the GKEDeployer class which orchestrates one
invocation of the extension. It coordinates specialized components for:
- Parameter and credential loading and resolution
- Template selection and rendering
- Google Cloud authentication
- Strategy reconciliation against the cluster
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from ..config.loader import find_credential, load_credentials, load_params
from ..config.models import DeployAction, GKECredential, Params
from ..config.resolver import resolve, resolve_credential_name, validate_credential
from ..errors import ConfigurationError, DeploymentError
from ..templates.composer import compose_templates
from ..templates.renderer import TemplateRenderer, build_template_data
from ..utils.console_like import ConsoleLike, coalesce_console
from .constants import DeploymentConstants, DeploymentPaths
from .reconciler import STRATEGIES, DeploymentIdentity, StrategyReconciler
from .shell_commands import ShellCommands

__all__ = ["GKEDeployer", "ReleaseContext"]


@dataclass(frozen=True)
class ReleaseContext:
    """Release details provided by the CI server.

    Attributes:
        app_label: Value of the pipeline's ``app`` label
        build_version: Version of the build being released
        release_name: Name of the release target
        release_action: Action chosen when starting the release
        labels: All labels set on the pipeline
    """

    app_label: str = ""
    build_version: str = ""
    release_name: str = ""
    release_action: str = ""
    labels: Mapping[str, str] = field(default_factory=dict)


class GKEDeployer:
    """Deployer for applications on Kubernetes Engine.

    The deployment workflow consists of:
    1. Load parameters and select the credential
    2. Resolve and validate the complete parameters
    3. Render config files and manifest templates (actions that apply manifests)
    4. Write the manifest and key file artifacts
    5. Authenticate with Google Cloud and fetch cluster credentials
    6. Reconcile the action's strategy against the cluster

    Attributes:
        constants: Deployment configuration constants
        paths: Deployment path resolver
        commands: Shell command executor
        renderer: Config file and manifest renderer
        reconciler: Strategy reconciler
    """

    def __init__(
        self,
        console: ConsoleLike | None = None,
        paths: DeploymentPaths | None = None,
        commands: ShellCommands | None = None,
        constants: DeploymentConstants | None = None,
    ) -> None:
        """Initialize the deployer.

        Args:
            console: Console for progress output
            paths: Deployment path resolver
            commands: Shell command executor
            constants: Optional deployment constants
        """
        self.console = coalesce_console(console)
        self.constants = constants or DeploymentConstants()
        self.paths = paths or DeploymentPaths()
        self.commands = commands or ShellCommands(self.paths.work_dir)

        self.renderer = TemplateRenderer(self.paths.work_dir)
        self.reconciler = StrategyReconciler(
            commands=self.commands,
            console=self.console,
            paths=self.paths,
            constants=self.constants,
        )

    # =========================================================================
    # Configuration
    # =========================================================================

    def _select_credential(
        self, raw_params: Params, credentials_json: str, release: ReleaseContext
    ) -> GKECredential:
        name = resolve_credential_name(raw_params, release.release_name)
        if not name:
            raise ConfigurationError(
                "No credentials configured",
                ["Set the credentials property or run as part of a release"],
            )

        credentials = load_credentials(credentials_json)
        credential = find_credential(credentials, name)
        if credential is None:
            raise ConfigurationError(
                f"Credential {name} not found",
                [f"Injected credentials: {', '.join(c.name for c in credentials) or 'none'}"],
            )
        return credential

    def resolve_params(
        self, params_json: str, credentials_json: str, release: ReleaseContext
    ) -> tuple[Params, GKECredential]:
        """Load, resolve and validate the parameters and credential.

        Returns:
            Tuple of (resolved params, selected credential)

        Raises:
            ConfigurationError: With every violated rule, if anything is invalid
        """
        raw_params = load_params(params_json)
        credential = self._select_credential(raw_params, credentials_json, release)

        params, valid, errors = resolve(
            raw_params,
            release.labels,
            credential,
            app_label=release.app_label,
            build_version=release.build_version,
            release_name=release.release_name,
            release_action=release.release_action,
        )
        errors = validate_credential(credential) + errors
        if not valid or errors:
            raise ConfigurationError("Invalid parameters", errors)

        return params, credential

    # =========================================================================
    # Artifacts
    # =========================================================================

    def _write_artifact(self, path: Path, content: str) -> None:
        """Write a file only its owner can read."""
        mode = self.constants.ARTIFACT_FILE_MODE
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
            with os.fdopen(fd, "w") as f:
                f.write(content)
            # O_CREAT leaves the mode of an existing file untouched
            path.chmod(mode)
        except OSError as e:
            raise DeploymentError(f"Failed writing {path}", details=str(e)) from e

    def render_manifest(self, params: Params) -> None:
        """Render config files and templates and write the manifest.

        Raises:
            DeploymentError: If rendering or writing fails
        """
        params = self.renderer.render_config_files(params)
        templates = compose_templates(params, self.paths.templates_dir)
        self.console.info("Rendering templates:")
        for template in templates:
            self.console.print(f"  [dim]{template}[/dim]")

        manifest = self.renderer.render_manifests(templates, build_template_data(params))
        logger.debug(f"Rendered manifest:\n{manifest}")
        self._write_artifact(self.paths.manifest, manifest)
        self.console.ok(f"Manifest written to {self.paths.manifest}")

    # =========================================================================
    # Authentication
    # =========================================================================

    def authenticate(self, credential: GKECredential) -> None:
        """Authenticate with the credential's service account and select its cluster.

        Raises:
            ConfigurationError: If the key file has no usable client_email
            DeploymentError: If any gcloud command fails
        """
        try:
            email = credential.service_account_email
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid service account keyfile in credential {credential.name}",
                [str(e)],
            ) from e

        self._write_artifact(self.paths.key_file, credential.decoded_keyfile)

        properties = credential.additional_properties
        gcloud = self.commands.gcloud
        steps = [
            (
                f"authenticating as {email}",
                lambda: gcloud.activate_service_account(email, self.paths.key_file),
            ),
            (f"setting account {email}", lambda: gcloud.set_config("account", email)),
            (
                f"setting project {properties.project}",
                lambda: gcloud.set_config("project", properties.project),
            ),
            (
                f"getting credentials for cluster {properties.cluster}",
                lambda: gcloud.get_cluster_credentials(
                    properties.cluster, credential.location_args
                ),
            ),
        ]

        self.console.info(f"Authenticating to cluster {properties.cluster}...")
        for description, run in steps:
            result = run()
            if not result.success:
                raise DeploymentError(
                    f"Failed {description}",
                    details=result.stderr.strip()
                    or f"Command exited with status {result.returncode}",
                )
        self.console.ok(f"Authenticated to cluster {properties.cluster}")

    # =========================================================================
    # Public Interface
    # =========================================================================

    def deploy(
        self, params_json: str, credentials_json: str, release: ReleaseContext
    ) -> None:
        """Run one deployment.

        Args:
            params_json: Custom properties as JSON
            credentials_json: Injected Kubernetes Engine credentials as JSON
            release: Release details provided by the CI server

        Raises:
            DeploymentError: If configuration, rendering or any cluster operation fails
        """
        params, credential = self.resolve_params(params_json, credentials_json, release)
        action = DeployAction(params.action)
        identity = DeploymentIdentity.for_action(params.app, params.namespace, action)

        self.console.info(
            f"Running {action.value} of {identity.name_with_track} "
            f"to namespace {identity.namespace}"
        )

        manifest_rendered = STRATEGIES[action].applies_manifest
        if manifest_rendered:
            self.render_manifest(params)

        self.authenticate(credential)
        self.reconciler.reconcile(params, action, manifest_rendered, identity)
