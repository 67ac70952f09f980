"""Deployment parameter models, loading and resolution."""

from .loader import (
    collect_estafette_labels,
    find_credential,
    load_credentials,
    load_params,
)
from .models import (
    AutoscaleParams,
    ConfigsParams,
    ContainerParams,
    DeployAction,
    GKECredential,
    GKECredentialProperties,
    MetricsParams,
    Params,
    ProbeParams,
    ResourceParams,
    RollingUpdateParams,
    SecretsParams,
    SidecarParams,
    Visibility,
)
from .resolver import (
    apply_credential_defaults,
    apply_defaults,
    merge_params,
    resolve,
    resolve_credential_name,
    validate_credential,
    validate_params,
)

__all__ = [
    # Models
    "Params",
    "AutoscaleParams",
    "ConfigsParams",
    "ContainerParams",
    "MetricsParams",
    "ProbeParams",
    "ResourceParams",
    "RollingUpdateParams",
    "SecretsParams",
    "SidecarParams",
    "GKECredential",
    "GKECredentialProperties",
    "DeployAction",
    "Visibility",
    # Loading
    "load_params",
    "load_credentials",
    "find_credential",
    "collect_estafette_labels",
    # Resolution
    "resolve",
    "resolve_credential_name",
    "merge_params",
    "apply_defaults",
    "apply_credential_defaults",
    "validate_params",
    "validate_credential",
]
