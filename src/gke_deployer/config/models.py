"""Deployment parameter and credential models.

These pydantic models describe the parameters an application passes to the
extension (custom properties in the pipeline manifest) and the Kubernetes
Engine credentials injected by the CI server. Field aliases match the JSON
keys used in the pipeline manifest; Python names can be used as well.

All models are frozen: resolution produces new instances instead of
mutating existing ones.
"""

from __future__ import annotations

import base64
import binascii
import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DeployAction(str, Enum):
    """Release actions supported by the extension."""

    DEPLOY_SIMPLE = "deploy-simple"
    DEPLOY_CANARY = "deploy-canary"
    DEPLOY_STABLE = "deploy-stable"
    ROLLBACK_CANARY = "rollback-canary"

    @property
    def track(self) -> str:
        """Deployment track the action operates on, empty for simple deploys."""
        if self in (DeployAction.DEPLOY_CANARY, DeployAction.ROLLBACK_CANARY):
            return "canary"
        if self is DeployAction.DEPLOY_STABLE:
            return "stable"
        return ""


class Visibility(str, Enum):
    """How the application is exposed.

    - PUBLIC: service of type LoadBalancer, no ingress
    - PRIVATE: ClusterIP service behind an nginx ingress
    - IAP: ClusterIP service behind a GCE ingress with Identity-Aware Proxy
    """

    PUBLIC = "public"
    PRIVATE = "private"
    IAP = "iap"


class ParamsModel(BaseModel):
    """Base model for all parameter sections."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class ResourceParams(ParamsModel):
    """Request/limit pair for cpu or memory."""

    request: str = ""
    limit: str = ""


class ProbeParams(ParamsModel):
    """HTTP probe settings."""

    path: str = ""
    initial_delay_seconds: int = Field(default=0, alias="delay")
    timeout_seconds: int = Field(default=0, alias="timeout")


class MetricsParams(ParamsModel):
    """Prometheus scrape settings."""

    scrape: str = ""
    path: str = ""
    port: int = 0

    @field_validator("scrape", mode="before")
    @classmethod
    def _bool_to_literal(cls, value: Any) -> Any:
        # JSON booleans are accepted; validation works on the string literal
        if isinstance(value, bool):
            return "true" if value else "false"
        return value


class ContainerParams(ParamsModel):
    """Application container settings."""

    image_repository: str = Field(default="", alias="repository")
    image_name: str = Field(default="", alias="name")
    image_tag: str = Field(default="", alias="tag")
    port: int = 0
    environment_variables: dict[str, Any] = Field(default_factory=dict, alias="env")
    cpu: ResourceParams = Field(default_factory=ResourceParams)
    memory: ResourceParams = Field(default_factory=ResourceParams)
    liveness_probe: ProbeParams = Field(default_factory=ProbeParams, alias="liveness")
    readiness_probe: ProbeParams = Field(
        default_factory=ProbeParams, alias="readiness"
    )
    metrics: MetricsParams = Field(default_factory=MetricsParams)


class AutoscaleParams(ParamsModel):
    """Horizontal pod autoscaler settings."""

    min_replicas: int = Field(default=0, alias="min")
    max_replicas: int = Field(default=0, alias="max")
    cpu_percentage: int = Field(default=0, alias="cpu")


class RollingUpdateParams(ParamsModel):
    """Deployment rolling update strategy (percentages or absolute counts)."""

    max_surge: str = Field(default="", alias="maxsurge")
    max_unavailable: str = Field(default="", alias="maxunavailable")


class SidecarParams(ParamsModel):
    """Reverse proxy sidecar settings."""

    type: str = ""
    image: str = ""
    cpu: ResourceParams = Field(default_factory=ResourceParams)
    memory: ResourceParams = Field(default_factory=ResourceParams)


class ConfigsParams(ParamsModel):
    """Config files mounted into the container from a ConfigMap."""

    files: list[str] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)
    mount_path: str = Field(default="", alias="mount")
    # Filled in after resolution, never read from the pipeline manifest
    rendered_file_content: dict[str, str] = Field(default_factory=dict, exclude=True)

    @field_validator("rendered_file_content", mode="before")
    @classmethod
    def _ignore_input(cls, value: Any) -> dict[str, str]:
        return {}


class SecretsParams(ParamsModel):
    """Secret files (base64 encoded values) mounted from a Secret."""

    keys: dict[str, str] = Field(default_factory=dict)
    mount_path: str = Field(default="", alias="mount")


class Params(ParamsModel):
    """Complete set of deployment parameters."""

    action: str = ""
    credentials: str = ""
    app: str = ""
    namespace: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    visibility: str = ""
    hosts: list[str] = Field(default_factory=list)
    basepath: str = ""
    autoscale: AutoscaleParams = Field(default_factory=AutoscaleParams)
    rolling_update: RollingUpdateParams = Field(
        default_factory=RollingUpdateParams, alias="rollingupdate"
    )
    container: ContainerParams = Field(default_factory=ContainerParams)
    sidecar: SidecarParams = Field(default_factory=SidecarParams)
    configs: ConfigsParams = Field(default_factory=ConfigsParams)
    secrets: SecretsParams = Field(default_factory=SecretsParams)
    dry_run: bool = Field(default=False, alias="dryrun")
    build_version: str = Field(default="", alias="buildVersion")
    trusted_ip_ranges: list[str] = Field(default_factory=list, alias="trustedips")
    local_manifests: list[str] = Field(default_factory=list, alias="manifests")


class GKECredentialProperties(ParamsModel):
    """Cluster details stored with a Kubernetes Engine credential."""

    service_account_keyfile: str = Field(default="", alias="serviceAccountKeyfile")
    project: str = ""
    cluster: str = ""
    region: str = ""
    zone: str = ""
    default_namespace: str = Field(default="", alias="defaultNamespace")
    defaults: Params | None = None


class GKECredential(ParamsModel):
    """A named Kubernetes Engine credential injected by the CI server."""

    name: str
    type: str = ""
    additional_properties: GKECredentialProperties = Field(
        default_factory=GKECredentialProperties, alias="additionalProperties"
    )

    @property
    def decoded_keyfile(self) -> str:
        """Return the service account key file as JSON text.

        The key file is accepted either as plain JSON or base64 encoded JSON.
        """
        keyfile = self.additional_properties.service_account_keyfile.strip()
        if keyfile.startswith("{"):
            return keyfile
        try:
            return base64.b64decode(keyfile, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return keyfile

    @property
    def service_account_email(self) -> str:
        """Extract ``client_email`` from the service account key file.

        Raises:
            ValueError: If the key file is not JSON or has no string client_email
        """
        try:
            keyfile = json.loads(self.decoded_keyfile)
        except json.JSONDecodeError as e:
            raise ValueError(f"Service account keyfile is not valid JSON: {e}") from e

        if not isinstance(keyfile, dict) or "client_email" not in keyfile:
            raise ValueError("Field client_email missing from service account keyfile")
        email = keyfile["client_email"]
        if not isinstance(email, str):
            raise ValueError("Field client_email not of type string")
        return email

    @property
    def location_args(self) -> list[str]:
        """Return the gcloud flag selecting the cluster zone or region."""
        properties = self.additional_properties
        if properties.zone:
            return ["--zone", properties.zone]
        if properties.region:
            return ["--region", properties.region]
        return []
