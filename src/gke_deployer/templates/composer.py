"""Selection and ordering of the manifest templates to render."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from ..config.models import Params, Visibility

BASE_TEMPLATES: tuple[str, ...] = (
    "service.yaml",
    "serviceaccount.yaml",
    "deployment.yaml",
    "horizontalpodautoscaler.yaml",
    "poddisruptionbudget.yaml",
)
INGRESS_TEMPLATE = "ingress.yaml"
SECRETS_TEMPLATE = "application-secrets.yaml"
CONFIGS_TEMPLATE = "application-configs.yaml"


def _base_name(template: str) -> str:
    return PurePosixPath(template).name


def compose_templates(
    params: Params, templates_dir: Path | str = "/templates"
) -> list[str]:
    """Return the ordered list of templates to render for the parameters.

    The built-in templates are extended with the ingress (private and iap
    visibility), application secrets and application configs when those
    features are used. Local manifests declared in the parameters then
    replace the built-in template with the same file name, keeping its
    position, or are appended when no built-in template matches.

    Args:
        params: Resolved deployment parameters
        templates_dir: Directory holding the built-in templates

    Returns:
        Template paths with unique file names
    """
    names = list(BASE_TEMPLATES)
    if params.visibility in (Visibility.PRIVATE, Visibility.IAP):
        names.append(INGRESS_TEMPLATE)
    if params.secrets.keys:
        names.append(SECRETS_TEMPLATE)
    if params.configs.files:
        names.append(CONFIGS_TEMPLATE)

    templates = [str(PurePosixPath(str(templates_dir)) / name) for name in names]

    for manifest in params.local_manifests:
        manifest_name = _base_name(manifest)
        for index, template in enumerate(templates):
            if _base_name(template) == manifest_name:
                templates[index] = manifest
                break
        else:
            templates.append(manifest)

    return templates
