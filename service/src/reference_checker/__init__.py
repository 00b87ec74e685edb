from .errors import (
    InitializationError,
    MalformedProfile,
    NotInitialized,
    ProfileNotFound,
    ReferenceCheckerError,
)
from .model import (
    AggregationMode,
    Finding,
    FindingCode,
    ReferenceConstraint,
    ResolvedReference,
    Severity,
)
from .pipeline import Facet, ValidationPipeline
from .profile_index import ProfileIndex
from .registry import ProfileRegistry
from .resolver import ReferenceResolver
from .validator import ReferenceValidator, check_reference, validate

__all__ = [
    "AggregationMode",
    "Facet",
    "Finding",
    "FindingCode",
    "InitializationError",
    "MalformedProfile",
    "NotInitialized",
    "ProfileIndex",
    "ProfileNotFound",
    "ProfileRegistry",
    "ReferenceCheckerError",
    "ReferenceConstraint",
    "ReferenceResolver",
    "ReferenceValidator",
    "ResolvedReference",
    "Severity",
    "ValidationPipeline",
    "check_reference",
    "validate",
]
