from .profile_declaration import check_declared_profiles
from .reference_validator import ReferenceValidator, check_reference, validate

__all__ = [
    "ReferenceValidator",
    "check_declared_profiles",
    "check_reference",
    "validate",
]
