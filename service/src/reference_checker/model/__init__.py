from .aggregation import AggregationMode
from .constraint import ANY_RESOURCE, ReferenceConstraint
from .finding import Finding, FindingCode, FindingSummary, Severity, ValidationResult
from .reference import (
    BundledReference,
    ContainedReference,
    ExternalReference,
    Reference,
    ResolvedReference,
)

__all__ = [
    "ANY_RESOURCE",
    "AggregationMode",
    "BundledReference",
    "ContainedReference",
    "ExternalReference",
    "Finding",
    "FindingCode",
    "FindingSummary",
    "Reference",
    "ReferenceConstraint",
    "ResolvedReference",
    "Severity",
    "ValidationResult",
]
