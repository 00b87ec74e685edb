"""Reference values found in an instance and their classification.

A reference is read into exactly one of three variants before it is
resolved, so containment never has to be inferred from the object graph:

- ContainedReference: target embedded in the referring resource (`#id`)
- BundledReference: target packaged as an entry of the same Bundle
- ExternalReference: target identified by a URL or logical type only
"""
from dataclasses import dataclass
from typing import Any, Optional, Union

from .aggregation import AggregationMode


@dataclass(frozen=True)
class ContainedReference:
    local_id: str
    inline_value: Optional[dict[str, Any]]

    mode = AggregationMode.CONTAINED


@dataclass(frozen=True)
class BundledReference:
    full_url: str
    entry_resource: Optional[dict[str, Any]]

    mode = AggregationMode.BUNDLED


@dataclass(frozen=True)
class ExternalReference:
    target_url: Optional[str]
    declared_type: Optional[str] = None

    mode = AggregationMode.REFERENCED


Reference = Union[ContainedReference, BundledReference, ExternalReference]


@dataclass(frozen=True)
class ResolvedReference:
    """Target type and observed aggregation mode of one reference occurrence.

    `target_type` is None when the type could not be determined from the
    instance; `reason` then says why.
    """

    target_type: Optional[str]
    mode: AggregationMode
    path: str
    location: Optional[str] = None
    reason: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.target_type is not None
