import logging
from functools import lru_cache
from pathlib import Path

import yaml

from ..errors import InitializationError
from ..profile_index import ProfileIndex

logger = logging.getLogger(__name__)

CORE_CONSTRAINTS_FILE = Path(__file__).parent / "core_reference_constraints.yaml"


def read_core_constraints(file: str | Path = CORE_CONSTRAINTS_FILE) -> dict[str, ProfileIndex]:
    """Base index per resource type from a `resources: {type: {path: [targets]}}` file."""
    file = Path(file)
    if not file.exists():
        raise InitializationError(f"core definitions file {file} does not exist")

    data = yaml.safe_load(file.read_text(encoding="utf-8")) or {}
    indexes: dict[str, ProfileIndex] = {}
    for resource_type, elements in (data.get("resources") or {}).items():
        indexes[resource_type] = ProfileIndex.from_mapping(
            {path: {target: None for target in targets} for path, targets in elements.items()}
        )

    logger.info(
        "loaded core reference definitions for %d resource types (FHIR %s)",
        len(indexes),
        data.get("fhirVersion"),
    )
    return indexes


@lru_cache(maxsize=1)
def core_indexes() -> dict[str, ProfileIndex]:
    return read_core_constraints()
