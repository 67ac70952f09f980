"""Tests for template selection."""

from collections.abc import Callable
from pathlib import PurePosixPath

import pytest

from gke_deployer.config import Params
from gke_deployer.templates import compose_templates

BASE = [
    "/templates/service.yaml",
    "/templates/serviceaccount.yaml",
    "/templates/deployment.yaml",
    "/templates/horizontalpodautoscaler.yaml",
    "/templates/poddisruptionbudget.yaml",
]


class TestComposeTemplates:
    """Tests for compose_templates."""

    def test_public_without_configs_or_secrets(
        self, make_params: Callable[..., Params]
    ) -> None:
        templates = compose_templates(make_params({"visibility": "public"}))

        assert templates == BASE

    @pytest.mark.parametrize("visibility", ["private", "iap"])
    def test_ingress_added_for_private_and_iap(
        self, make_params: Callable[..., Params], visibility: str
    ) -> None:
        templates = compose_templates(make_params({"visibility": visibility}))

        assert templates == [*BASE, "/templates/ingress.yaml"]

    def test_secrets_and_configs_appended_in_order(
        self, make_params: Callable[..., Params]
    ) -> None:
        params = make_params(
            {
                "visibility": "private",
                "secrets": {"keys": {"secret.json": "c2VjcmV0"}},
                "configs": {"files": ["config/app.yaml"]},
            }
        )

        templates = compose_templates(params)

        assert templates[len(BASE) :] == [
            "/templates/ingress.yaml",
            "/templates/application-secrets.yaml",
            "/templates/application-configs.yaml",
        ]

    def test_local_manifest_replaces_template_in_place(
        self, make_params: Callable[..., Params]
    ) -> None:
        params = make_params(
            {"visibility": "public", "manifests": ["kubernetes/deployment.yaml"]}
        )

        templates = compose_templates(params)

        assert templates[2] == "kubernetes/deployment.yaml"
        assert len(templates) == len(BASE)

    def test_unmatched_local_manifest_is_appended(
        self, make_params: Callable[..., Params]
    ) -> None:
        params = make_params(
            {"visibility": "public", "manifests": ["kubernetes/cronjob.yaml"]}
        )

        templates = compose_templates(params)

        assert templates == [*BASE, "kubernetes/cronjob.yaml"]

    def test_file_names_stay_unique(self, make_params: Callable[..., Params]) -> None:
        params = make_params(
            {
                "manifests": [
                    "kubernetes/service.yaml",
                    "kubernetes/ingress.yaml",
                    "kubernetes/extra.yaml",
                ],
            }
        )

        templates = compose_templates(params)
        names = [PurePosixPath(template).name for template in templates]

        assert len(names) == len(set(names))
        assert templates[0] == "kubernetes/service.yaml"
        assert "kubernetes/ingress.yaml" in templates
        assert "/templates/ingress.yaml" not in templates

    def test_custom_templates_dir(self, make_params: Callable[..., Params]) -> None:
        templates = compose_templates(make_params({"visibility": "public"}), "/opt/tpl")

        assert templates[0] == "/opt/tpl/service.yaml"

    def test_composition_is_deterministic(self, make_params: Callable[..., Params]) -> None:
        params = make_params({"manifests": ["kubernetes/extra.yaml"]})

        assert compose_templates(params) == compose_templates(params)
