"""Aggregation of validation findings into summary counts."""

from collections import Counter
from typing import Iterable

from ..model.finding import Finding, FindingSummary, Severity


class FindingAggregator:
    """Counts findings per severity and per code."""

    @staticmethod
    def build_summary(findings: Iterable[Finding]) -> FindingSummary:
        findings = list(findings)
        by_severity = Counter(str(f.severity) for f in findings)
        by_code = Counter(str(f.code) for f in findings)

        return FindingSummary(
            total=len(findings),
            by_severity={severity.value: by_severity.get(severity.value, 0) for severity in Severity},
            by_code=dict(sorted(by_code.items())),
        )

    @staticmethod
    def error_count(summary: FindingSummary) -> int:
        return summary.by_severity.get(Severity.ERROR.value, 0)
