from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"


class FindingCode(StrEnum):
    REFERENCE_TYPE_NOT_ALLOWED = "reference_type_not_allowed"
    AGGREGATION_MODE_NOT_ALLOWED = "aggregation_mode_not_allowed"
    REFERENCE_TARGET_UNRESOLVED = "reference_target_unresolved"
    PROFILE_UNKNOWN = "profile_unknown"


class Finding(BaseModel):
    """A single conformance problem found in an instance.

    `path` is the element path the constraint is declared on
    (e.g. "Communication.subject"), `location` the position inside the
    instance (e.g. "Communication.definition[0]").
    """

    model_config = ConfigDict(frozen=True)

    severity: Severity
    path: str
    message: str
    code: FindingCode
    location: str | None = None


class FindingSummary(BaseModel):
    total: int
    by_severity: dict[str, int] = {}
    by_code: dict[str, int] = {}


class ValidationResult(BaseModel):
    resource_type: str | None = None
    profiles: list[str] = []
    findings: list[Finding] = []
    summary: FindingSummary

    @property
    def valid(self) -> bool:
        return not any(f.severity == Severity.ERROR for f in self.findings)
