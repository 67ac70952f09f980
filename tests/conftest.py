import json
from collections.abc import Callable
from typing import Any

import pytest

from gke_deployer.config import (
    GKECredential,
    GKECredentialProperties,
    Params,
    resolve,
)

SERVICE_ACCOUNT_EMAIL = "deployer@my-project.iam.gserviceaccount.com"

KEYFILE = {
    "type": "service_account",
    "project_id": "my-project",
    "client_email": SERVICE_ACCOUNT_EMAIL,
}


@pytest.fixture
def keyfile_json() -> str:
    """Service account key file as stored in a credential."""
    return json.dumps(KEYFILE)


@pytest.fixture
def credential(keyfile_json: str) -> GKECredential:
    """Credential for a regional cluster with a default namespace."""
    return GKECredential(
        name="gke-production",
        type="kubernetes-engine",
        additional_properties=GKECredentialProperties(
            service_account_keyfile=keyfile_json,
            project="my-project",
            cluster="production-europe-west1",
            region="europe-west1",
            default_namespace="mynamespace",
        ),
    )


@pytest.fixture
def make_params(credential: GKECredential) -> Callable[..., Params]:
    """Resolve custom properties the way a release of ``myapp`` would.

    Returns a factory taking the custom properties as a dict (JSON keys) and
    optionally the release action.
    """

    def _make(
        properties: dict[str, Any] | None = None,
        action: str = "deploy-simple",
    ) -> Params:
        raw = {"hosts": ["myapp.example.com"], **(properties or {})}
        params, valid, errors = resolve(
            Params.model_validate(raw),
            {"team": "myteam"},
            credential,
            app_label="myapp",
            build_version="1.0.3",
            release_name="production",
            release_action=action,
        )
        assert valid, errors
        return params

    return _make
