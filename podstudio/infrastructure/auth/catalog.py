"""Demographic catalog loading."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from podstudio.domain.auth.model.demographics import DemographicCatalog
from podstudio.domain.shared.error import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).with_name("demographics.yaml")


def load_catalog(path: str | Path | None = None) -> DemographicCatalog:
    """Load the persona/vertical catalog from YAML.

    Args:
        path: Catalog file; the bundled default when None

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    catalog_path = Path(path).expanduser() if path else DEFAULT_CATALOG_PATH
    try:
        data = yaml.safe_load(catalog_path.read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read demographic catalog {catalog_path}: {e}") from e

    try:
        catalog = DemographicCatalog.model_validate(data or {})
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid demographic catalog {catalog_path}: {e}") from e

    logger.debug(
        "Loaded demographic catalog from %s: %d personas, %d verticals",
        catalog_path,
        len(catalog.personas),
        len(catalog.verticals),
    )
    return catalog
