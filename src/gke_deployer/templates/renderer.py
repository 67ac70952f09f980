"""Rendering of the composed manifest templates with Jinja2."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

import yaml
from jinja2 import Environment, StrictUndefined, TemplateError
from loguru import logger

from ..config.models import DeployAction, Params, Visibility
from ..errors import DeploymentError

DOCUMENT_SEPARATOR = "\n---\n"


@dataclass(frozen=True)
class TemplateData:
    """Values available to the manifest templates."""

    name: str
    name_with_track: str
    track: str
    namespace: str
    build_version: str
    labels: dict[str, str]
    app_label_selector: str

    # Exposure
    hosts: list[str]
    service_type: str
    use_ingress: bool
    ingress_class: str
    ingress_path: str
    use_iap: bool
    trusted_ip_ranges: list[str]

    # Scaling
    include_autoscaling: bool
    replicas: int
    min_replicas: int
    max_replicas: int
    target_cpu_percentage: int
    max_surge: str
    max_unavailable: str

    # Application container
    image: str
    container_port: int
    environment_variables: dict[str, str]
    cpu_request: str
    cpu_limit: str
    memory_request: str
    memory_limit: str
    liveness_path: str
    liveness_initial_delay_seconds: int
    liveness_timeout_seconds: int
    readiness_path: str
    readiness_initial_delay_seconds: int
    readiness_timeout_seconds: int
    metrics_scrape: bool
    metrics_path: str
    metrics_port: int

    # Sidecar
    sidecar_type: str
    sidecar_image: str
    sidecar_cpu_request: str
    sidecar_cpu_limit: str
    sidecar_memory_request: str
    sidecar_memory_limit: str

    # Mounted configs and secrets
    mount_configs: bool
    configs_mount_path: str
    config_files: dict[str, str] = field(default_factory=dict)
    mount_secrets: bool = False
    secrets_mount_path: str = ""
    secrets: dict[str, str] = field(default_factory=dict)


def build_template_data(params: Params) -> TemplateData:
    """Derive the template values from resolved parameters."""
    track = DeployAction(params.action).track if params.action else ""
    name_with_track = f"{params.app}-{track}" if track else params.app

    labels = dict(params.labels)
    if track:
        labels["track"] = track

    container = params.container
    sidecar = params.sidecar
    use_iap = params.visibility == Visibility.IAP
    ingress_path = params.basepath
    if use_iap:
        # GCE ingress paths need a wildcard to match everything below them
        ingress_path = params.basepath.rstrip("/") + "/*"

    return TemplateData(
        name=params.app,
        name_with_track=name_with_track,
        track=track,
        namespace=params.namespace,
        build_version=params.build_version,
        labels=labels,
        app_label_selector=params.app,
        hosts=list(params.hosts),
        service_type="LoadBalancer"
        if params.visibility == Visibility.PUBLIC
        else "ClusterIP",
        use_ingress=params.visibility in (Visibility.PRIVATE, Visibility.IAP),
        ingress_class="gce" if use_iap else "nginx",
        ingress_path=ingress_path,
        use_iap=use_iap,
        trusted_ip_ranges=list(params.trusted_ip_ranges),
        include_autoscaling=track != "canary",
        replicas=1 if track == "canary" else params.autoscale.min_replicas,
        min_replicas=params.autoscale.min_replicas,
        max_replicas=params.autoscale.max_replicas,
        target_cpu_percentage=params.autoscale.cpu_percentage,
        max_surge=params.rolling_update.max_surge,
        max_unavailable=params.rolling_update.max_unavailable,
        image=f"{container.image_repository}/{container.image_name}:{container.image_tag}",
        container_port=container.port,
        environment_variables={
            key: str(value) for key, value in container.environment_variables.items()
        },
        cpu_request=container.cpu.request,
        cpu_limit=container.cpu.limit,
        memory_request=container.memory.request,
        memory_limit=container.memory.limit,
        liveness_path=container.liveness_probe.path,
        liveness_initial_delay_seconds=container.liveness_probe.initial_delay_seconds,
        liveness_timeout_seconds=container.liveness_probe.timeout_seconds,
        readiness_path=container.readiness_probe.path,
        readiness_initial_delay_seconds=container.readiness_probe.initial_delay_seconds,
        readiness_timeout_seconds=container.readiness_probe.timeout_seconds,
        metrics_scrape=container.metrics.scrape == "true",
        metrics_path=container.metrics.path,
        metrics_port=container.metrics.port,
        sidecar_type=sidecar.type,
        sidecar_image=sidecar.image,
        sidecar_cpu_request=sidecar.cpu.request,
        sidecar_cpu_limit=sidecar.cpu.limit,
        sidecar_memory_request=sidecar.memory.request,
        sidecar_memory_limit=sidecar.memory.limit,
        mount_configs=len(params.configs.files) > 0,
        configs_mount_path=params.configs.mount_path,
        config_files=dict(params.configs.rendered_file_content),
        mount_secrets=len(params.secrets.keys) > 0,
        secrets_mount_path=params.secrets.mount_path,
        secrets=dict(params.secrets.keys),
    )


class TemplateRenderer:
    """Renders config files and manifest templates.

    Relative template and config file paths are resolved against the
    pipeline working directory; the built-in templates use absolute paths.
    """

    def __init__(self, work_dir: Path) -> None:
        """Initialize the renderer.

        Args:
            work_dir: Pipeline working directory holding local manifests and configs
        """
        self.work_dir = work_dir
        self.environment = Environment(
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def _read(self, path: str) -> str:
        full_path = self.work_dir / path
        try:
            return full_path.read_text()
        except OSError as e:
            raise DeploymentError(
                f"Failed reading template {path}",
                details=f"Could not read {full_path}: {e}",
            ) from e

    def _render(self, source: str, context: dict[str, Any], origin: str) -> str:
        try:
            return self.environment.from_string(source).render(**context)
        except TemplateError as e:
            raise DeploymentError(
                f"Failed rendering {origin}", details=f"{type(e).__name__}: {e}"
            ) from e

    def render_config_files(self, params: Params) -> Params:
        """Render the declared config files with the configs data.

        Returns:
            Parameters whose configs carry the rendered content keyed by file name
        """
        rendered: dict[str, str] = {}
        for config_file in params.configs.files:
            logger.info(f"Rendering config file {config_file}...")
            rendered[PurePosixPath(config_file).name] = self._render(
                self._read(config_file), dict(params.configs.data), config_file
            )
        configs = params.configs.model_copy(update={"rendered_file_content": rendered})
        return params.model_copy(update={"configs": configs})

    def render_manifests(self, templates: list[str], data: TemplateData) -> str:
        """Render the templates into a single multi-document manifest.

        The templates are joined with document separators and rendered in
        one pass; the result must parse as YAML.

        Raises:
            DeploymentError: If a template is missing, fails to render or
                does not produce valid YAML
        """
        source = DOCUMENT_SEPARATOR.join(self._read(template) for template in templates)
        rendered = self._render(source, asdict(data), "manifest templates")

        try:
            list(yaml.safe_load_all(rendered))
        except yaml.YAMLError as e:
            raise DeploymentError(
                "Rendered manifests are not valid YAML", details=str(e)
            ) from e

        return rendered
