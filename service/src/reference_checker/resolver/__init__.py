from .reference_resolver import (
    ReferenceResolver,
    ResolutionContext,
    index_bundle_entries,
    parse_target_type,
)

__all__ = [
    "ReferenceResolver",
    "ResolutionContext",
    "index_bundle_entries",
    "parse_target_type",
]
