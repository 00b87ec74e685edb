import logging
from typing import Any, List

from ..model.finding import Finding, FindingCode, Severity
from ..registry import ProfileRegistry, declared_profiles
from .instance import as_resource, iter_resources

logger = logging.getLogger(__name__)


def check_declared_profiles(
    instance: Any, registry: ProfileRegistry, error_for_unknown_profiles: bool = True
) -> List[Finding]:
    """One finding per `meta.profile` entry the registry does not know."""
    severity = Severity.ERROR if error_for_unknown_profiles else Severity.WARNING
    findings: List[Finding] = []

    for resource, location in iter_resources(as_resource(instance)):
        resource_type = resource.get("resourceType")
        for i, url in enumerate(declared_profiles(resource)):
            if registry.is_known(url):
                continue
            logger.debug("%s: unknown profile %s", location, url)
            findings.append(
                Finding(
                    severity=severity,
                    path=f"{resource_type}.meta.profile",
                    message=f"profile {url} is not known to the validator",
                    code=FindingCode.PROFILE_UNKNOWN,
                    location=f"{location}.meta.profile[{i}]",
                )
            )
    return findings
