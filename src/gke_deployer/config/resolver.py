"""Parameter resolution: layered defaults and validation.

The deployment parameters are built from three layers, lowest to highest
precedence:

1. built-in defaults (``defaults.py``)
2. defaults embedded in the selected credential
3. the custom properties from the pipeline manifest

Layering happens per field: a value that is "set" (non-empty string or
collection, non-zero number, ``True``) in a higher layer wins, otherwise the
lower layer shows through. All functions here are pure and return new
``Params`` instances.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

import yaml
from loguru import logger
from pydantic import BaseModel

from . import defaults
from .models import (
    DeployAction,
    GKECredential,
    Params,
    ProbeParams,
    ResourceParams,
    Visibility,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

_BOOLEAN_LITERALS = ("true", "false")


def is_set(value: Any) -> bool:
    """Return True if a parameter value counts as explicitly set."""
    if value is None or value is False:
        return False
    if isinstance(value, str | list | dict | tuple):
        return len(value) > 0
    if isinstance(value, int | float):
        return value != 0
    return True


def merge_params(base: ModelT, overlay: ModelT) -> ModelT:
    """Overlay one parameter model on another, field by field.

    Nested sections are merged recursively; maps and lists are treated as
    single values, so a non-empty overlay map replaces the base map.

    Args:
        base: Lower-precedence parameters
        overlay: Higher-precedence parameters

    Returns:
        A new model holding the merged values
    """
    updates: dict[str, Any] = {}
    for name in type(overlay).model_fields:
        base_value = getattr(base, name)
        overlay_value = getattr(overlay, name)
        if isinstance(overlay_value, BaseModel) and isinstance(base_value, BaseModel):
            updates[name] = merge_params(base_value, overlay_value)
        elif is_set(overlay_value):
            updates[name] = overlay_value
        else:
            updates[name] = base_value
    return base.model_copy(update=updates)


def _default_resources(
    resources: ResourceParams, default_request: str, default_limit: str
) -> ResourceParams:
    """Fill in a request/limit pair, letting each fall back to the other."""
    request, limit = resources.request, resources.limit
    if not request and not limit:
        request, limit = default_request, default_limit
    elif not request:
        request = limit
    elif not limit:
        limit = request
    return resources.model_copy(update={"request": request, "limit": limit})


def _default_probe(
    probe: ProbeParams, path: str, initial_delay_seconds: int, timeout_seconds: int
) -> ProbeParams:
    return probe.model_copy(
        update={
            "path": probe.path or path,
            "initial_delay_seconds": probe.initial_delay_seconds
            or initial_delay_seconds,
            "timeout_seconds": probe.timeout_seconds or timeout_seconds,
        }
    )


def resolve_credential_name(raw_params: Params, release_name: str) -> str:
    """Return the credential reference, defaulting to ``gke-<release name>``."""
    if raw_params.credentials:
        return raw_params.credentials
    if release_name:
        return f"{defaults.CREDENTIALS_PREFIX}{release_name}"
    return ""


def apply_credential_defaults(params: Params, credential: GKECredential) -> Params:
    """Default namespace and image repository from the credential.

    Args:
        params: Parameters to complete
        credential: Selected Kubernetes Engine credential

    Returns:
        Parameters with namespace and image repository filled in where empty
    """
    properties = credential.additional_properties
    container = params.container.model_copy(
        update={
            "image_repository": params.container.image_repository
            or properties.project
        }
    )
    return params.model_copy(
        update={
            "namespace": params.namespace or properties.default_namespace,
            "container": container,
        }
    )


def apply_defaults(
    params: Params,
    app_label: str = "",
    build_version: str = "",
    release_name: str = "",
    release_action: str = "",
    estafette_labels: Mapping[str, str] | None = None,
) -> Params:
    """Fill every empty parameter with its pipeline-derived or built-in default.

    Args:
        params: Merged parameters from credential defaults and manifest
        app_label: Value of the pipeline ``app`` label
        build_version: Version of the build being released
        release_name: Name of the release target, used for the credential name
        release_action: Release action chosen when starting the release
        estafette_labels: Labels set on the pipeline

    Returns:
        Completed parameters
    """
    app = params.app or app_label

    labels = dict(params.labels) if params.labels else dict(estafette_labels or {})
    if app:
        labels["app"] = app

    port = params.container.port or defaults.CONTAINER_PORT

    metrics = params.container.metrics
    metrics = metrics.model_copy(
        update={
            "scrape": metrics.scrape or defaults.METRICS_SCRAPE,
            "path": metrics.path or defaults.METRICS_PATH,
            "port": metrics.port or port,
        }
    )

    container = params.container.model_copy(
        update={
            "image_name": params.container.image_name or app,
            "image_tag": params.container.image_tag or build_version,
            "port": port,
            "cpu": _default_resources(
                params.container.cpu, defaults.CPU_REQUEST, defaults.CPU_LIMIT
            ),
            "memory": _default_resources(
                params.container.memory,
                defaults.MEMORY_REQUEST,
                defaults.MEMORY_LIMIT,
            ),
            "liveness_probe": _default_probe(
                params.container.liveness_probe,
                defaults.LIVENESS_PATH,
                defaults.LIVENESS_INITIAL_DELAY_SECONDS,
                defaults.LIVENESS_TIMEOUT_SECONDS,
            ),
            "readiness_probe": _default_probe(
                params.container.readiness_probe,
                defaults.READINESS_PATH,
                defaults.READINESS_INITIAL_DELAY_SECONDS,
                defaults.READINESS_TIMEOUT_SECONDS,
            ),
            "metrics": metrics,
        }
    )

    sidecar = params.sidecar.model_copy(
        update={
            "type": params.sidecar.type or defaults.SIDECAR_TYPE,
            "image": params.sidecar.image or defaults.SIDECAR_IMAGE,
            "cpu": _default_resources(
                params.sidecar.cpu,
                defaults.SIDECAR_CPU_REQUEST,
                defaults.SIDECAR_CPU_LIMIT,
            ),
            "memory": _default_resources(
                params.sidecar.memory,
                defaults.SIDECAR_MEMORY_REQUEST,
                defaults.SIDECAR_MEMORY_LIMIT,
            ),
        }
    )

    autoscale = params.autoscale.model_copy(
        update={
            "min_replicas": params.autoscale.min_replicas
            or defaults.AUTOSCALE_MIN_REPLICAS,
            "max_replicas": params.autoscale.max_replicas
            or defaults.AUTOSCALE_MAX_REPLICAS,
            "cpu_percentage": params.autoscale.cpu_percentage
            or defaults.AUTOSCALE_CPU_PERCENTAGE,
        }
    )

    rolling_update = params.rolling_update.model_copy(
        update={
            "max_surge": params.rolling_update.max_surge
            or defaults.ROLLING_UPDATE_MAX_SURGE,
            "max_unavailable": params.rolling_update.max_unavailable
            or defaults.ROLLING_UPDATE_MAX_UNAVAILABLE,
        }
    )

    configs = params.configs.model_copy(
        update={"mount_path": params.configs.mount_path or defaults.CONFIGS_MOUNT_PATH}
    )
    secrets = params.secrets.model_copy(
        update={"mount_path": params.secrets.mount_path or defaults.SECRETS_MOUNT_PATH}
    )

    credentials = params.credentials
    if not credentials and release_name:
        credentials = f"{defaults.CREDENTIALS_PREFIX}{release_name}"

    return params.model_copy(
        update={
            "app": app,
            "labels": labels,
            "action": params.action or release_action,
            "credentials": credentials,
            "build_version": build_version,
            "visibility": params.visibility or defaults.VISIBILITY,
            "basepath": params.basepath or defaults.BASEPATH,
            "trusted_ip_ranges": list(
                params.trusted_ip_ranges or defaults.CLOUDFLARE_IP_RANGES
            ),
            "container": container,
            "sidecar": sidecar,
            "autoscale": autoscale,
            "rolling_update": rolling_update,
            "configs": configs,
            "secrets": secrets,
        }
    )


def validate_params(params: Params) -> tuple[bool, list[str]]:
    """Check that all required parameters are set and enumerations are valid.

    Every rule is evaluated; the returned list holds one message per violation.

    Returns:
        Tuple of (valid, errors)
    """
    errors: list[str] = []
    container = params.container

    def require(value: Any, message: str) -> None:
        if not is_set(value):
            errors.append(message)

    def require_positive(value: int, message: str) -> None:
        if value <= 0:
            errors.append(message)

    require(
        params.app,
        "Application name is required; either define an app label or use app override property",
    )
    require(
        params.namespace,
        "Namespace is required; either use credentials with a default namespace or set it via namespace property",
    )
    require(
        params.action,
        "Action is required; set it via action property or start the release with an action",
    )
    if params.action and params.action not in {a.value for a in DeployAction}:
        errors.append(
            f"Action {params.action!r} is not supported; "
            f"use one of {', '.join(a.value for a in DeployAction)}"
        )
    require(
        params.credentials,
        "Credentials property is required; set it via credentials property",
    )

    require(
        container.image_repository,
        "Image repository is required; set it via container.repository property",
    )
    require(container.image_name, "Image name is required; set it via container.name property")
    require(container.image_tag, "Image tag is required; set it via container.tag property")
    require(container.cpu.request, "Cpu request is required; set it via container.cpu.request property")
    require(container.cpu.limit, "Cpu limit is required; set it via container.cpu.limit property")
    require(
        container.memory.request,
        "Memory request is required; set it via container.memory.request property",
    )
    require(
        container.memory.limit,
        "Memory limit is required; set it via container.memory.limit property",
    )
    require_positive(container.port, "Container port must be larger than zero")

    require_positive(
        container.liveness_probe.initial_delay_seconds,
        "Liveness initial delay must be larger than zero",
    )
    require_positive(
        container.liveness_probe.timeout_seconds,
        "Liveness timeout must be larger than zero",
    )
    require(container.liveness_probe.path, "Liveness path is required")
    # readiness probes may legitimately start immediately
    require_positive(
        container.readiness_probe.timeout_seconds,
        "Readiness timeout must be larger than zero",
    )
    require(container.readiness_probe.path, "Readiness path is required")

    metrics = container.metrics
    if metrics.scrape not in _BOOLEAN_LITERALS:
        errors.append(
            f"Metrics scrape must be 'true' or 'false', got {metrics.scrape!r}"
        )
    if metrics.scrape == "true":
        require(metrics.path, "Metrics path is required when metrics scrape is enabled")
        require_positive(
            metrics.port, "Metrics port must be larger than zero when scrape is enabled"
        )

    if params.visibility not in {v.value for v in Visibility}:
        errors.append(
            f"Visibility {params.visibility!r} is not supported; "
            f"use one of {', '.join(v.value for v in Visibility)}"
        )
    if not params.hosts:
        errors.append("At least one host is required; set it via hosts array property")
    require(params.basepath, "Basepath is required; set it via basepath property")

    require_positive(
        params.autoscale.min_replicas, "Autoscaling min replicas must be larger than zero"
    )
    require_positive(
        params.autoscale.max_replicas, "Autoscaling max replicas must be larger than zero"
    )
    require_positive(
        params.autoscale.cpu_percentage,
        "Autoscaling cpu percentage must be larger than zero",
    )

    require(params.sidecar.type, "Sidecar type is required")
    require(params.sidecar.image, "Sidecar image is required")
    require(params.sidecar.cpu.request, "Sidecar cpu request is required")
    require(params.sidecar.cpu.limit, "Sidecar cpu limit is required")
    require(params.sidecar.memory.request, "Sidecar memory request is required")
    require(params.sidecar.memory.limit, "Sidecar memory limit is required")

    require(
        params.rolling_update.max_surge,
        "Rolling update max surge is required; set it via rollingupdate.maxsurge property",
    )
    require(
        params.rolling_update.max_unavailable,
        "Rolling update max unavailable is required; set it via rollingupdate.maxunavailable property",
    )

    return len(errors) == 0, errors


def validate_credential(credential: GKECredential) -> list[str]:
    """Check that a credential carries everything needed to reach its cluster."""
    properties = credential.additional_properties
    errors: list[str] = []
    if not properties.project:
        errors.append(f"Credential {credential.name} has no project")
    if not properties.cluster:
        errors.append(f"Credential {credential.name} has no cluster")
    if not properties.service_account_keyfile:
        errors.append(f"Credential {credential.name} has no service account keyfile")
    if bool(properties.zone) == bool(properties.region):
        errors.append(
            f"Credential {credential.name} must define exactly one of zone or region"
        )
    return errors


def resolve(
    raw_params: Params,
    estafette_labels: Mapping[str, str],
    credential: GKECredential,
    app_label: str = "",
    build_version: str = "",
    release_name: str = "",
    release_action: str = "",
) -> tuple[Params, bool, list[str]]:
    """Resolve the complete deployment parameters for one invocation.

    Args:
        raw_params: Custom properties from the pipeline manifest
        estafette_labels: Labels set on the pipeline
        credential: Credential selected by name
        app_label: Value of the pipeline ``app`` label
        build_version: Version of the build being released
        release_name: Name of the release target
        release_action: Release action chosen when starting the release

    Returns:
        Tuple of (params, valid, errors)
    """
    base = credential.additional_properties.defaults
    if base is not None:
        logger.info(f"Using defaults from credential {credential.name}...")
        logger.debug(
            yaml.safe_dump(
                base.model_dump(by_alias=True, exclude_defaults=True),
                default_flow_style=False,
            )
        )
        params = merge_params(base, raw_params)
    else:
        params = raw_params

    params = apply_credential_defaults(params, credential)
    params = apply_defaults(
        params,
        app_label=app_label,
        build_version=build_version,
        release_name=release_name,
        release_action=release_action,
        estafette_labels=estafette_labels,
    )

    valid, errors = validate_params(params)
    return params, valid, errors
