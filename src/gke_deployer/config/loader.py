"""Loading of pipeline-supplied parameters, credentials and labels."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from ..errors import ConfigurationError
from .models import GKECredential, Params

LABEL_ENV_PREFIX = "ESTAFETTE_LABEL_"

_CREDENTIALS_ADAPTER = TypeAdapter(list[GKECredential])


def _format_validation_error(error: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in item['loc']) or '<root>'}: {item['msg']}"
        for item in error.errors()
    ]


def load_params(params_json: str) -> Params:
    """Parse the custom properties passed to the extension.

    Args:
        params_json: JSON object with the custom properties

    Returns:
        Parsed, not yet defaulted parameters

    Raises:
        ConfigurationError: If the JSON is malformed or has values of the wrong type
    """
    logger.info("Unmarshalling parameters / custom properties...")
    try:
        return Params.model_validate_json(params_json or "{}")
    except ValidationError as e:
        raise ConfigurationError(
            "Failed unmarshalling parameters", _format_validation_error(e)
        ) from e


def load_credentials(credentials_json: str) -> list[GKECredential]:
    """Parse the Kubernetes Engine credentials injected by the CI server.

    Raises:
        ConfigurationError: If the JSON is malformed or not a list of credentials
    """
    logger.info("Unmarshalling injected credentials...")
    try:
        return _CREDENTIALS_ADAPTER.validate_json(credentials_json or "[]")
    except ValidationError as e:
        raise ConfigurationError(
            "Failed unmarshalling injected credentials", _format_validation_error(e)
        ) from e


def find_credential(
    credentials: Iterable[GKECredential], name: str
) -> GKECredential | None:
    """Return the credential with exactly the given name, if any."""
    for credential in credentials:
        if credential.name == name:
            return credential
    return None


def collect_estafette_labels(
    environ: Mapping[str, str],
    prefix: str = LABEL_ENV_PREFIX,
) -> dict[str, str]:
    """Fold ``ESTAFETTE_LABEL_*`` environment variables into a label map.

    The prefix is stripped and the remaining key lower-cased, so
    ``ESTAFETTE_LABEL_TEAM=x`` becomes ``{"team": "x"}``.
    """
    logger.info("Getting all estafette labels from envvars...")
    return {
        name[len(prefix) :].lower(): value
        for name, value in environ.items()
        if name.startswith(prefix) and len(name) > len(prefix)
    }
