"""Composition of validation facets.

Facets are a fixed set of functions of (instance, registry) that each
report findings independently. The caller picks which facets run and in
which order; their findings are concatenated in that order.
"""
import logging
from enum import StrEnum
from typing import Any, List, Sequence

from .model.finding import Finding
from .registry import ProfileRegistry
from .validator.instance import as_resource
from .validator.profile_declaration import check_declared_profiles
from .validator.reference_validator import ReferenceValidator

logger = logging.getLogger(__name__)


class Facet(StrEnum):
    PROFILE_DECLARATION = "profile_declaration"
    REFERENCES = "references"


DEFAULT_FACETS = (Facet.PROFILE_DECLARATION, Facet.REFERENCES)


class ValidationPipeline:
    def __init__(
        self,
        registry: ProfileRegistry,
        facets: Sequence[Facet] = DEFAULT_FACETS,
        error_for_unknown_profiles: bool = True,
        validate_contained: bool = True,
        validate_bundle_entries: bool = True,
    ) -> None:
        self.registry = registry
        self.facets = tuple(Facet(f) for f in facets)
        self.error_for_unknown_profiles = error_for_unknown_profiles
        self.reference_validator = ReferenceValidator(
            registry,
            validate_contained=validate_contained,
            validate_bundle_entries=validate_bundle_entries,
        )

    def run(self, instance: Any) -> List[Finding]:
        resource = as_resource(instance)
        findings: List[Finding] = []
        for facet in self.facets:
            found = self.run_facet(facet, resource)
            logger.debug("facet %s: %d findings", facet, len(found))
            findings.extend(found)
        return findings

    def run_facet(self, facet: Facet, instance: Any) -> List[Finding]:
        if facet == Facet.PROFILE_DECLARATION:
            return check_declared_profiles(
                instance, self.registry, self.error_for_unknown_profiles
            )
        if facet == Facet.REFERENCES:
            return self.reference_validator.validate(instance)
        raise ValueError(f"unsupported facet {facet}")
