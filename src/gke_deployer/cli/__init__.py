"""Main CLI application module.

This module provides the entry point of the extension container. Every
option can be given on the command line or through the environment variables
the CI server sets; a ``.env`` file in the current directory is read for
local runs.
"""

import os
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from loguru import logger

from ..config.loader import collect_estafette_labels
from ..deployment.constants import DeploymentConstants, DeploymentPaths
from ..deployment.deployer import GKEDeployer, ReleaseContext
from .console import console, with_error_handling

_constants = DeploymentConstants()

app = typer.Typer(
    help="🚀 Deploy applications to Kubernetes Engine from an Estafette pipeline",
    rich_markup_mode="rich",
)


def _configure_logging(level: str) -> None:
    """Send loguru output to stderr at the requested level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _get_deployer(paths: DeploymentPaths) -> GKEDeployer:
    """Build the deployer for the given paths."""
    return GKEDeployer(console=console, paths=paths, constants=_constants)


@app.command()
@with_error_handling
def deploy(
    params: Annotated[
        str,
        typer.Option(
            "--params",
            envvar="ESTAFETTE_EXTENSION_CUSTOM_PROPERTIES",
            help="Custom properties of the pipeline stage as JSON",
            show_default=False,
        ),
    ],
    credentials: Annotated[
        str,
        typer.Option(
            "--credentials",
            envvar="ESTAFETTE_CREDENTIALS_KUBERNETES_ENGINE",
            help="Injected Kubernetes Engine credentials as JSON",
            show_default=False,
        ),
    ],
    app_name: Annotated[
        str,
        typer.Option(
            "--app-name",
            envvar="ESTAFETTE_LABEL_APP",
            help="Application name, from the pipeline's app label",
        ),
    ] = "",
    build_version: Annotated[
        str,
        typer.Option(
            "--build-version",
            envvar="ESTAFETTE_BUILD_VERSION",
            help="Version of the build being released",
        ),
    ] = "",
    release_name: Annotated[
        str,
        typer.Option(
            "--release-name",
            envvar="ESTAFETTE_RELEASE_NAME",
            help="Name of the release target",
        ),
    ] = "",
    release_action: Annotated[
        str,
        typer.Option(
            "--release-action",
            envvar="ESTAFETTE_RELEASE_ACTION",
            help="Release action (deploy-simple, deploy-canary, deploy-stable, rollback-canary)",
        ),
    ] = "",
    templates_dir: Annotated[
        Path,
        typer.Option(
            "--templates-dir",
            envvar="GKE_DEPLOYER_TEMPLATES_DIR",
            help="Directory holding the built-in manifest templates",
        ),
    ] = Path(_constants.TEMPLATES_DIR),
    work_dir: Annotated[
        Path,
        typer.Option(
            "--work-dir",
            envvar="GKE_DEPLOYER_WORK_DIR",
            help="Pipeline working directory with local manifests and config files",
        ),
    ] = Path(_constants.WORK_DIR),
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            envvar="GKE_DEPLOYER_LOG_LEVEL",
            help="Log level for diagnostic logging",
        ),
    ] = "INFO",
) -> None:
    """Deploy an application to Kubernetes Engine.

    This command:
    - Resolves the stage parameters against credential and built-in defaults
    - Renders the manifest templates to /kubernetes.yaml
    - Authenticates with the credential's service account
    - Applies the manifest and converges the canary, stable or simple track

    Examples:
        gke-deployer
        gke-deployer --release-action deploy-canary --params '{"app": "myapp"}'
    """
    _configure_logging(log_level)
    console.print_header("Deploying to Kubernetes Engine")

    release = ReleaseContext(
        app_label=app_name,
        build_version=build_version,
        release_name=release_name,
        release_action=release_action,
        labels=collect_estafette_labels(os.environ),
    )
    paths = DeploymentPaths(templates_dir=templates_dir, work_dir=work_dir)

    deployer = _get_deployer(paths)
    deployer.deploy(params, credentials, release)


def main() -> None:
    """Main entry point for the CLI."""
    load_dotenv(Path.cwd() / ".env", override=False)
    app()


if __name__ == "__main__":
    main()
