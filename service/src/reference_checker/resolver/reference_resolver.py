"""Classification of references found in an instance.

The resolver works on the instance alone: it never consults a profile and
never dereferences a URL. Contained targets are looked up in the `contained`
list of the enclosing resource, bundled targets among the entries of the
enclosing Bundle, and the type of an external target is read off the
structure of its URL.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..model.reference import (
    BundledReference,
    ContainedReference,
    ExternalReference,
    Reference,
    ResolvedReference,
)

logger = logging.getLogger(__name__)

RESOURCE_TYPE_PATTERN = re.compile(r"[A-Z][A-Za-z]+")
RESOURCE_ID_PATTERN = re.compile(r"[A-Za-z0-9\-.]{1,64}")
HISTORY_SEGMENT = "_history"


@dataclass(frozen=True)
class ResolutionContext:
    """Where the references of one resource can point to inside the document.

    `container` is the resource whose `contained` list local references
    resolve against; for a contained resource that is its parent.
    """

    container: Optional[Dict[str, Any]] = None
    bundle_entries: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def contained(self) -> Dict[str, Dict[str, Any]]:
        if not self.container:
            return {}
        return {
            res["id"]: res
            for res in self.container.get("contained") or []
            if isinstance(res, dict) and isinstance(res.get("id"), str)
        }


def index_bundle_entries(bundle: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Entry resources of *bundle* by fullUrl and by relative `Type/id`."""
    entries: Dict[str, Dict[str, Any]] = {}
    for entry in bundle.get("entry") or []:
        resource = entry.get("resource") if isinstance(entry, dict) else None
        if not isinstance(resource, dict):
            continue
        full_url = entry.get("fullUrl")
        if isinstance(full_url, str):
            entries[full_url] = resource
        if resource.get("resourceType") and resource.get("id"):
            entries.setdefault(f"{resource['resourceType']}/{resource['id']}", resource)
    return entries


def parse_target_type(url: str) -> Optional[str]:
    """Resource type named by the segment preceding the id in *url*.

    Handles relative (`Patient/1`), absolute (`http://host/fhir/Patient/1`)
    and versioned (`Patient/1/_history/2`) references. A conditional
    reference (`Patient?identifier=x`) names its type without an id. URNs
    and other shapes without a type segment yield None.
    """
    target, conditional, _ = url.partition("?")
    segments = target.split("#", 1)[0].rstrip("/").split("/")
    if conditional and RESOURCE_TYPE_PATTERN.fullmatch(segments[-1]):
        return segments[-1]
    if len(segments) >= 4 and segments[-2] == HISTORY_SEGMENT:
        segments = segments[:-2]
    if len(segments) < 2:
        return None

    type_segment, id_segment = segments[-2], segments[-1]
    if RESOURCE_TYPE_PATTERN.fullmatch(type_segment) and RESOURCE_ID_PATTERN.fullmatch(id_segment):
        return type_segment
    return None


class ReferenceResolver:
    def read(self, node: Dict[str, Any], context: ResolutionContext) -> Optional[Reference]:
        """Tagged reference variant for a JSON Reference object.

        Returns None for references that only carry an identifier or a
        display text: they name no target that could be checked.
        """
        target = node.get("reference")
        declared_type = node.get("type") if isinstance(node.get("type"), str) else None

        if isinstance(target, str) and target.startswith("#"):
            local_id = target[1:]
            inline = context.container if not local_id else context.contained.get(local_id)
            return ContainedReference(local_id=local_id, inline_value=inline)

        if isinstance(target, str) and target in context.bundle_entries:
            return BundledReference(full_url=target, entry_resource=context.bundle_entries[target])

        if isinstance(target, str) and target:
            return ExternalReference(target_url=target, declared_type=declared_type)

        if declared_type is not None:
            return ExternalReference(target_url=None, declared_type=declared_type)

        return None

    def resolve(
        self, reference: Reference, path: str, location: Optional[str] = None
    ) -> ResolvedReference:
        if isinstance(reference, ContainedReference):
            target_type, reason = _embedded_type(
                reference.inline_value, f"no contained resource with id '{reference.local_id}'"
            )
        elif isinstance(reference, BundledReference):
            target_type, reason = _embedded_type(
                reference.entry_resource, f"no bundle entry for '{reference.full_url}'"
            )
        else:
            target_type, reason = _external_type(reference)

        resolved = ResolvedReference(
            target_type=target_type,
            mode=reference.mode,
            path=path,
            location=location,
            reason=reason,
        )
        logger.debug(
            "%s: %s reference to %s", location or path, resolved.mode, target_type or "<unresolved>"
        )
        return resolved

    def classify(
        self,
        node: Dict[str, Any],
        path: str,
        context: ResolutionContext,
        location: Optional[str] = None,
    ) -> Optional[ResolvedReference]:
        reference = self.read(node, context)
        if reference is None:
            return None
        return self.resolve(reference, path, location)


def _embedded_type(resource: Optional[Dict[str, Any]], missing: str) -> tuple[Optional[str], Optional[str]]:
    if resource is None:
        return None, missing
    resource_type = resource.get("resourceType")
    if isinstance(resource_type, str) and RESOURCE_TYPE_PATTERN.fullmatch(resource_type):
        return resource_type, None
    return None, f"embedded resource has no valid resourceType ({resource_type!r})"


def _external_type(reference: ExternalReference) -> tuple[Optional[str], Optional[str]]:
    declared = reference.declared_type
    if declared is not None and not RESOURCE_TYPE_PATTERN.fullmatch(declared):
        return None, f"declared type '{declared}' is not a resource type"

    parsed = parse_target_type(reference.target_url) if reference.target_url else None
    if parsed and declared and parsed != declared:
        return None, f"url names type '{parsed}' but declared type is '{declared}'"
    if parsed or declared:
        return parsed or declared, None
    return None, f"no resource type in reference '{reference.target_url}'"
