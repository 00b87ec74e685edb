"""Reference and aggregation-mode conformance of an instance.

Every reference occurrence is classified by the ReferenceResolver and
checked against the constraint the ProfileIndex holds for its element path:

1. no constraint at the path: conformant
2. target type not allowed: one type finding, the mode is not checked
3. type allowed, declared modes for it non-empty and the observed mode not
   among them: one mode finding
4. otherwise conformant

Findings come back in document order. Nothing in here raises for a
structurally valid instance.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..model.constraint import ReferenceConstraint
from ..model.finding import Finding, FindingCode, Severity
from ..model.reference import ResolvedReference
from ..profile_index import EMPTY_INDEX, ProfileIndex
from ..registry import ProfileRegistry
from ..resolver.reference_resolver import (
    ReferenceResolver,
    ResolutionContext,
    index_bundle_entries,
)
from .instance import as_resource, is_resource

logger = logging.getLogger(__name__)

BUNDLE_TYPE = "Bundle"


def check_reference(
    resolved: ResolvedReference, constraint: Optional[ReferenceConstraint]
) -> Optional[Finding]:
    if constraint is None:
        return None

    path = constraint.path
    target_type = resolved.target_type

    if target_type is None:
        return Finding(
            severity=Severity.ERROR,
            path=path,
            message=f"target type of reference could not be resolved at {path}: {resolved.reason}",
            code=FindingCode.REFERENCE_TARGET_UNRESOLVED,
            location=resolved.location,
        )

    if not constraint.allows_type(target_type):
        return Finding(
            severity=Severity.ERROR,
            path=path,
            message=f"target type {target_type} not permitted at {path}",
            code=FindingCode.REFERENCE_TYPE_NOT_ALLOWED,
            location=resolved.location,
        )

    allowed_modes = constraint.modes_for(target_type)
    if allowed_modes and resolved.mode not in allowed_modes:
        return Finding(
            severity=Severity.ERROR,
            path=path,
            message=(
                f"aggregation mode {resolved.mode} not permitted for type "
                f"{target_type} at {path}"
            ),
            code=FindingCode.AGGREGATION_MODE_NOT_ALLOWED,
            location=resolved.location,
        )

    return None


class ReferenceValidator:
    def __init__(
        self,
        registry: Optional[ProfileRegistry] = None,
        resolver: Optional[ReferenceResolver] = None,
        validate_contained: bool = True,
        validate_bundle_entries: bool = True,
    ) -> None:
        self.registry = registry
        self.resolver = resolver or ReferenceResolver()
        self.validate_contained = validate_contained
        self.validate_bundle_entries = validate_bundle_entries

    def validate(self, instance: Any, profile_index: Optional[ProfileIndex] = None) -> List[Finding]:
        """Findings for every non-conformant reference in *instance*.

        The root resource is checked against *profile_index* when given,
        otherwise against what the registry selects for it. Nested
        resources always use the registry when there is one.
        """
        resource = as_resource(instance)
        findings: List[Finding] = []
        index = profile_index if profile_index is not None else self._index_for(resource, EMPTY_INDEX)

        self._walk_resource(
            resource,
            location=resource.get("resourceType"),
            index=index,
            container=resource,
            bundle_entries={},
            findings=findings,
        )
        logger.debug("%d reference findings for %s", len(findings), resource.get("resourceType"))
        return findings

    def _index_for(self, resource: Dict[str, Any], fallback: ProfileIndex) -> ProfileIndex:
        if self.registry is None:
            return fallback
        return self.registry.select(resource).index

    def _walk_resource(
        self,
        resource: Dict[str, Any],
        location: str,
        index: ProfileIndex,
        container: Dict[str, Any],
        bundle_entries: Dict[str, Dict[str, Any]],
        findings: List[Finding],
    ) -> None:
        resource_type = resource.get("resourceType")
        if resource_type == BUNDLE_TYPE:
            bundle_entries = index_bundle_entries(resource)
        context = ResolutionContext(container=container, bundle_entries=bundle_entries)

        for key, value in resource.items():
            if key == "resourceType" or key.startswith("_"):
                continue

            if key == "contained":
                if not self.validate_contained:
                    continue
                for i, inner in enumerate(value or []):
                    if is_resource(inner):
                        # local references of a contained resource resolve in its container
                        self._walk_resource(
                            inner,
                            f"{location}.contained[{i}]",
                            self._index_for(inner, index),
                            resource,
                            bundle_entries,
                            findings,
                        )
                continue

            self._walk(value, f"{resource_type}.{key}", f"{location}.{key}", index, context, findings)

    def _walk(
        self,
        node: Any,
        path: str,
        location: str,
        index: ProfileIndex,
        context: ResolutionContext,
        findings: List[Finding],
    ) -> None:
        if isinstance(node, list):
            # each occurrence of a repeating element is checked on its own
            for i, item in enumerate(node):
                self._walk_element(item, path, f"{location}[{i}]", index, context, findings)
        else:
            self._walk_element(node, path, location, index, context, findings)

    def _walk_element(
        self,
        node: Any,
        path: str,
        location: str,
        index: ProfileIndex,
        context: ResolutionContext,
        findings: List[Finding],
    ) -> None:
        if not isinstance(node, dict):
            return

        if is_resource(node):
            if self.validate_bundle_entries:
                self._walk_resource(
                    node,
                    location,
                    self._index_for(node, index),
                    node,
                    context.bundle_entries,
                    findings,
                )
            return

        constraint = index.lookup(path)
        if self._is_reference(node, constraint):
            resolved = self.resolver.classify(node, path, context, location)
            if resolved is not None:
                finding = check_reference(resolved, constraint)
                if finding is not None:
                    logger.debug("%s: %s", location, finding.message)
                    findings.append(finding)

        for key, value in node.items():
            if key.startswith("_"):
                continue
            self._walk(value, f"{path}.{key}", f"{location}.{key}", index, context, findings)

    @staticmethod
    def _is_reference(node: Dict[str, Any], constraint: Optional[ReferenceConstraint]) -> bool:
        if isinstance(node.get("reference"), str):
            return True
        # logical reference at an element declared as Reference
        return constraint is not None and isinstance(node.get("type"), str)


def validate(instance: Any, profile_index: ProfileIndex) -> List[Finding]:
    """Reference findings of *instance* against one flattened profile."""
    return ReferenceValidator().validate(instance, profile_index)
